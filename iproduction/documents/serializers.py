from rest_framework import serializers
from .renderers import RENDERERS


class DocumentEmailSerializer(serializers.Serializer):
    """
    Payload of POST documents/email/

    For financial statements `id` is the statement type
    (trial-balance, balance-sheet or profit-loss).
    """
    type = serializers.CharField(max_length=50)
    id = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    subject = serializers.CharField(max_length=200, required=False, allow_blank=True)
    message = serializers.CharField(required=False, allow_blank=True)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate_type(self, value):
        if value not in RENDERERS:
            raise serializers.ValidationError(f"Unknown document type '{value}'. Choose from: {', '.join(RENDERERS)}.")
        return value
