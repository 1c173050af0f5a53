from django.db import models


class IdentifierSequence(models.Model):
    """
    High-water mark of one identifier series in one period bucket.

    Every number at or below ``last_value`` was handed out once and is never
    proposed again, even after the row that carried it is deleted.
    """
    name = models.CharField(max_length=32)
    prefix = models.CharField(max_length=8)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "identifiers_sequence"
        constraints = [
            models.UniqueConstraint(fields=["name", "prefix"], name="uq_identifier_sequence_bucket"),
        ]

    def __str__(self) -> str:
        return f"{self.name} {self.prefix} #{self.last_value}"
