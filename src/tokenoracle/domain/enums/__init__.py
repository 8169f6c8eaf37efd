from tokenoracle.domain.enums.network import Network
from tokenoracle.domain.enums.price_source import PriceSourceTag
from tokenoracle.domain.enums.status import FINISHED_JOB_STATUSES, JobStatus

__all__ = [
    "FINISHED_JOB_STATUSES",
    "JobStatus",
    "Network",
    "PriceSourceTag",
]
