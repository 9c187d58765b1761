"""Route classification: where files are stored and which fields a route expects."""

from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

from app.core.logger import LogIcon, logger

# Documented fallback when the route schema cannot be determined. It matches the
# scratchcard creation form only; extend ROUTE_FIELD_RULES when adding routes.
DEFAULT_EXPECTED_FIELDS: tuple[str, ...] = ("scratchcard_image", "prize_images")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RouteRule(Generic[T]):
    """Policy applied to every route identifier containing ``marker``."""

    marker: str
    policy: T


# Ordered: the first matching marker wins.
DESTINATION_RULES: tuple[RouteRule[str], ...] = (
    RouteRule("scratchcard", "uploads/scratchcards"),
    RouteRule("prize", "uploads/prizes"),
)
GENERIC_DESTINATION = "uploads"

ROUTE_FIELD_RULES: tuple[RouteRule[tuple[str, ...]], ...] = (
    RouteRule("/upload-image", ("image",)),
    RouteRule("/upload-prize-image", ("image",)),
    RouteRule("/admin/create", DEFAULT_EXPECTED_FIELDS),
)


def match_route(rules: tuple[RouteRule[T], ...], route: str) -> T | None:
    """Return the policy of the first rule whose marker occurs in ``route``."""
    for rule in rules:
        if rule.marker in route:
            return rule.policy
    return None


def destination_for(route: str) -> str:
    """Relative destination directory for a route identifier."""
    return match_route(DESTINATION_RULES, route) or GENERIC_DESTINATION


def resolve_destination(route: str, root: Path) -> Path:
    """Resolve and create the directory files for ``route`` are written to.

    Creation is idempotent so concurrent requests may race on it. Any other
    ``OSError`` (permissions, full disk) propagates to the caller.
    """
    directory = root / destination_for(route)
    if not directory.is_dir():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info("Created upload directory", icon=LogIcon.FOLDER, directory=str(directory))
    return directory


def expected_fields_for(route: str | None, declared: list[str] | None = None) -> list[str]:
    """Field names a route expects, for field-mismatch reporting.

    Declared upload schema first, then the route rule table, then
    DEFAULT_EXPECTED_FIELDS when the route is unknown.
    """
    if declared:
        return list(declared)
    if not route:
        return list(DEFAULT_EXPECTED_FIELDS)
    return list(match_route(ROUTE_FIELD_RULES, route) or ())
