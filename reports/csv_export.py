"""
REPORTS App - CSV exports for the backoffice tables

Output is UTF-8 text with a BOM. Commas and line breaks are stripped from
cell values, so lines are a plain comma join.
"""

import re
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from django.utils import timezone

BOM = '\ufeff'

DRIVER_HEADERS = ['Nom', 'Téléphone', 'Type', 'Véhicule', 'Livraisons', 'Gains', 'Note', 'Statut']
DELIVERY_HEADERS = [
    'Code', 'Statut', 'Client', 'Livreur',
    'Adresse de retrait', 'Adresse de livraison', 'Prix', 'Créée le',
]

_UNSAFE = re.compile(r'[,\r\n]')


def clean_cell(value) -> str:
    if value is None:
        return ''
    return _UNSAFE.sub('', str(value))


def build_csv(headers: Sequence[str], rows: Iterable[Sequence]) -> str:
    """
    BOM + header line + one line per row, separated by '\\n'.

    No trailing newline: N rows give N + 1 lines.
    """
    lines = [','.join(clean_cell(h) for h in headers)]
    for row in rows:
        lines.append(','.join(clean_cell(cell) for cell in row))
    return BOM + '\n'.join(lines)


def export_filename(prefix: str, day: Optional[date] = None) -> str:
    day = day or timezone.localdate()
    return f"{prefix}-{day.isoformat()}.csv"


def driver_row(driver) -> List:
    rating = driver.rating
    return [
        driver.full_name,
        driver.phone,
        'Entreprise' if driver.company_id else 'Indépendant',
        driver.vehicle_type or '-',
        driver.total_deliveries,
        driver.total_earnings,
        f"{rating:.1f}" if rating is not None else '-',
        driver.status,
    ]


def delivery_row(delivery) -> List:
    return [
        delivery.tracking_code,
        delivery.status,
        delivery.business_client.company_name if delivery.business_client_id else '-',
        delivery.driver.full_name if delivery.driver_id else '-',
        delivery.pickup_address,
        delivery.delivery_address,
        delivery.total_price,
        timezone.localtime(delivery.created_at).strftime('%Y-%m-%d %H:%M'),
    ]


def export_drivers_csv(drivers) -> Tuple[str, str]:
    """Returns (filename, content)."""
    content = build_csv(DRIVER_HEADERS, (driver_row(d) for d in drivers))
    return export_filename('livreurs'), content


def export_deliveries_csv(deliveries) -> Tuple[str, str]:
    """Returns (filename, content)."""
    content = build_csv(DELIVERY_HEADERS, (delivery_row(d) for d in deliveries))
    return export_filename('livraisons'), content
