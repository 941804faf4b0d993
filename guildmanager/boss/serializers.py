from rest_framework import serializers
from .models import Boss


class BossSerializer(serializers.ModelSerializer):
    next_spawn = serializers.DateTimeField(read_only=True)

    class Meta:
        model = Boss
        fields = ["id", "name", "type", "respawn_time", "last_killed", "next_spawn", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {
            "last_killed": {"required": False, "allow_null": True},
        }

    def validate_respawn_time(self, value):
        if value < 1:
            raise serializers.ValidationError("Respawn time must be at least one minute.")
        return value
