from django.db import models


class Option(models.Model):
    """관리자가 런타임에 바꾸는 설정값 (가격, 한도 등)."""

    name = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=500, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}={self.value}"
