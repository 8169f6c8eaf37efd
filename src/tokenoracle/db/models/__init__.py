from tokenoracle.db.models.backfill_job import BackfillJobRecord
from tokenoracle.db.models.price_sample import PriceSampleRecord

__all__ = [
    "BackfillJobRecord",
    "PriceSampleRecord",
]
