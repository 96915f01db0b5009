"""
Declarative mixins that give an ORM model a SNILS attribute.

    class Person(Snilsable, Base):
        __tablename__ = "people"
        id: Mapped[int] = mapped_column(primary_key=True)

    person.set_snils("123-456-789 64")
"""

from typing import Optional, Union

from sqlalchemy.orm import Mapped, mapped_column

from .exceptions import InvalidSnilsError
from .snils import Snils
from .sqlalchemy_types import SnilsCanonicalType, SnilsType


class _SnilsAccessors:
    def has_snils(self) -> bool:
        return self.snils is not None

    def set_snils(self, snils: Union[Snils, str, int, None]) -> "_SnilsAccessors":
        """
        Set SNILS from an instance, string, integer or None.

        An empty string clears the value.

        Raises:
            InvalidSnilsError: If a string or integer is not a valid SNILS
        """
        if isinstance(snils, (str, int)) and not isinstance(snils, bool):
            if snils == "":
                self.snils = None
                return self

            parsed = Snils.create_from_format(snils)
            if parsed is None:
                raise InvalidSnilsError(snils)
            snils = parsed

        # Keep the current instance when the value is unchanged
        if not (isinstance(self.snils, Snils) and self.snils.is_equal(snils)):
            self.snils = snils

        return self


class Snilsable(_SnilsAccessors):
    """SNILS body stored as an unsigned integer column (no checksum)."""

    snils: Mapped[Optional[Snils]] = mapped_column(
        SnilsType(), nullable=True, comment="СНИЛС"
    )


class SnilsableCanonical(_SnilsAccessors):
    """SNILS stored as an 11-character canonical string column."""

    snils: Mapped[Optional[Snils]] = mapped_column(
        SnilsCanonicalType(), nullable=True, comment="СНИЛС"
    )


__all__ = ["Snilsable", "SnilsableCanonical"]
