import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    driver = "driver"
    investor = "investor"


class DriverTier(str, enum.Enum):
    A = "A"
    B = "B"


class InvestorTier(str, enum.Enum):
    X = "X"
    Y = "Y"


# admins carry a placeholder tier
ADMIN_PLACEHOLDER_TIER = DriverTier.A.value

TIERS_BY_ROLE: dict[UserRole, frozenset[str]] = {
    UserRole.admin: frozenset({ADMIN_PLACEHOLDER_TIER}),
    UserRole.driver: frozenset(tier.value for tier in DriverTier),
    UserRole.investor: frozenset(tier.value for tier in InvestorTier),
}


class ExpenseType(str, enum.Enum):
    admin = "admin"
    driver = "driver"
    investor = "investor"


class PayoutStatus(str, enum.Enum):
    pending = "pending"
    paid = "paid"


def tier_allowed(role: UserRole | str, tier: str) -> bool:
    return tier in TIERS_BY_ROLE[UserRole(role)]


def default_tier(role: UserRole | str) -> str:
    role = UserRole(role)
    if role == UserRole.investor:
        return InvestorTier.X.value
    return DriverTier.A.value


def enum_value(item: object) -> object:
    """Plain value of an enum member; anything else passes through."""
    return getattr(item, "value", item)
