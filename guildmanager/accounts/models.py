from datetime import datetime, timezone as dt_timezone

from django.db import models


class BlacklistedAccessToken(models.Model):
    """Access tokens revoked at logout; refresh tokens use simplejwt's own blacklist."""
    jti = models.CharField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()

    class Meta:
        db_table = 'blacklisted_access_token'

    def __str__(self):
        return f'{self.jti} (expires {self.expires_at:%Y-%m-%d %H:%M})'

    @classmethod
    def revoke(cls, token):
        expires_at = datetime.fromtimestamp(token['exp'], tz=dt_timezone.utc)
        entry, _ = cls.objects.get_or_create(jti=token['jti'], defaults={'expires_at': expires_at})
        return entry

    @classmethod
    def is_revoked(cls, jti):
        return bool(jti) and cls.objects.filter(jti=jti).exists()
