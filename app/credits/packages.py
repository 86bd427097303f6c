"""
Credit package catalog.

Packages are static tiers; prices are derived from the configured
per-credit price so a pricing change never leaves the catalog stale.

Usage:
    from credits.packages import get_package, list_packages

    package = get_package(2)       # Basic, 10 credits
    package.price                  # 500 (INR)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from credits.conf import credit_settings


@dataclass(frozen=True)
class Package:
    id: int
    name: str
    credits: int
    price: int
    currency: str
    description: str

    @property
    def amount(self) -> int:
        """Price in the currency's smallest unit."""
        return self.price * 100

    def to_dict(self) -> dict:
        return asdict(self)


# (id, name, credits, description)
PACKAGE_TIERS = (
    (1, "Starter", 5, "Try the marketplace with a handful of applications"),
    (2, "Basic", 10, "For occasional applications"),
    (3, "Pro", 25, "For freelancers applying every week"),
    (4, "Business", 50, "For studios and high-volume applicants"),
)

# Upper bound of average monthly applications served by each tier
RECOMMENDATION_THRESHOLDS = ((5, 1), (10, 2), (25, 3))


def list_packages() -> list[Package]:
    """Return every package in display order, priced at current settings."""
    conf = credit_settings()
    return [
        Package(
            id=package_id,
            name=name,
            credits=credits,
            price=credits * conf.price_per_credit,
            currency=conf.currency,
            description=description,
        )
        for package_id, name, credits, description in PACKAGE_TIERS
    ]


def get_package(package_id: int) -> Package | None:
    for package in list_packages():
        if package.id == package_id:
            return package
    return None


def recommended_package(avg_monthly_applications: int) -> Package:
    """Pick the smallest tier covering the given monthly application volume."""
    for threshold, package_id in RECOMMENDATION_THRESHOLDS:
        if avg_monthly_applications <= threshold:
            return get_package(package_id)
    return get_package(PACKAGE_TIERS[-1][0])
