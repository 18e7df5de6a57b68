from rest_framework import serializers


class DraftSaveSerializer(serializers.Serializer):
    data = serializers.JSONField()
