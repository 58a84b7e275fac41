"""Hit-testing for the postal code dropdown region."""

from dataclasses import dataclass

POSTAL_CODE_INPUT = "postal_code_input"
POSTAL_CODE_TOGGLE = "postal_code_toggle"
POSTAL_CODE_OPTIONS = "postal_code_options"


@dataclass(frozen=True, slots=True)
class DropdownController:
    """
    Knows which interaction targets belong to the postal code region.

    The host routes pointer events here; anything outside the region closes
    the candidate list without clearing it.
    """

    region: frozenset[str] = frozenset(
        {POSTAL_CODE_INPUT, POSTAL_CODE_TOGGLE, POSTAL_CODE_OPTIONS}
    )

    def contains(self, target: str | None) -> bool:
        return target is not None and target in self.region
