from tokenoracle.db.repos.backfill_job_repo import BackfillJobRepo
from tokenoracle.db.repos.price_repo import PriceRepo

__all__ = ["BackfillJobRepo", "PriceRepo"]
