from django.db import models


class ConversionRecord(models.Model):
    """One completed conversion, as shown to the user."""
    amount = models.FloatField()
    source = models.TextField()
    target = models.TextField()
    result = models.FloatField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'conversion_history'
        indexes = [
            models.Index(fields=['created_at'], name='conversion_created_idx'),
        ]

    def __str__(self):
        return f"{self.amount} {self.source} -> {self.result} {self.target}"
