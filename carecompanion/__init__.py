__version__ = "1.0.0"
__title__ = "CareCompanion"
__description__ = "Dementia-care tracking API for caregivers and therapists"
__license__ = "MIT"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
