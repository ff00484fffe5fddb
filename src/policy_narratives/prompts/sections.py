"""Dossier sections."""

from enum import Enum

from policy_narratives.errors import UnknownSectionError


class Section(str, Enum):
    """Closed set of dossier sections, in generation order."""

    RECOMMENDATION = "recommendation"
    FEASIBILITY = "feasibility"
    CONTINGENCY = "contingency"
    COMPARABLE = "comparable"

    @classmethod
    def parse(cls, value: "Section | str") -> "Section":
        """Coerce a section id, failing loudly on anything outside the set.

        Raises:
            UnknownSectionError: If ``value`` is not a known section
        """
        try:
            return cls(value)
        except ValueError as e:
            raise UnknownSectionError(f"Unknown section: {value!r}") from e


DOSSIER_SECTIONS: tuple[Section, ...] = tuple(Section)
