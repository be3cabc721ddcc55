from vortex.models.base import Base
from vortex.models.digest_history import DigestHistory
from vortex.models.digest_settings import DigestSettings
from vortex.models.job_run import JobRun

__all__ = [
    "Base",
    "DigestSettings",
    "DigestHistory",
    "JobRun",
]
