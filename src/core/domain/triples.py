"""
Triples — Раздел триплетов CoMID

CoRIM: Section 5.1.4 (triples-map)

Держит необязательные коллекции триплетов разных видов. Коллекция
создаётся лениво при первом добавлении; validate() проверяет только
присутствующие коллекции.
"""

from pydantic import BaseModel, ConfigDict, Field

from src.core.errors import CoRIMValidationError

from .membership_triple import DomainMembershipTriple, DomainMembershipTriples
from .value_triple import ValueTriple, ValueTriples


class Triples(BaseModel):
    """
    Раздел триплетов документа.

    CoRIM: triples-map (reference-triples, endorsed-triples, membership-triples)
    """

    reference_values: ValueTriples | None = Field(
        None, alias="reference-values", description="Эталонные значения"
    )
    endorsed_values: ValueTriples | None = Field(
        None, alias="endorsed-values", description="Подтверждённые значения"
    )
    domain_membership: DomainMembershipTriples | None = Field(
        None, alias="domain-membership", description="Триплеты членства в домене"
    )

    model_config = ConfigDict(populate_by_name=True)

    def is_empty(self) -> bool:
        return all(
            c is None or c.is_empty()
            for c in (self.reference_values, self.endorsed_values, self.domain_membership)
        )

    def add_reference_value(self, triple: ValueTriple) -> "Triples":
        if self.reference_values is None:
            self.reference_values = ValueTriples.new()
        self.reference_values.add(triple)
        return self

    def add_endorsed_value(self, triple: ValueTriple) -> "Triples":
        if self.endorsed_values is None:
            self.endorsed_values = ValueTriples.new()
        self.endorsed_values.add(triple)
        return self

    def add_domain_membership_triple(self, triple: DomainMembershipTriple) -> "Triples":
        """
        Добавить триплет членства, создав коллекцию при первом вызове.

        Returns:
            self — для цепочек вызовов
        """
        if self.domain_membership is None:
            self.domain_membership = DomainMembershipTriples.new()
        self.domain_membership.add(triple)
        return self

    def validate(self) -> None:  # type: ignore[override]
        """
        Валидация раздела триплетов.

        Raises:
            CoRIMValidationError: Пустой раздел или первая ошибка коллекции
        """
        if self.is_empty():
            raise CoRIMValidationError("triples struct must not be empty")

        sections = (
            ("reference values", self.reference_values),
            ("endorsed values", self.endorsed_values),
            ("domain membership triples", self.domain_membership),
        )
        for name, collection in sections:
            if collection is None:
                continue
            try:
                collection.validate()
            except CoRIMValidationError as err:
                raise CoRIMValidationError.wrap(name, err)


def add_domain_membership_triple(
    triples: Triples | None, triple: DomainMembershipTriple
) -> Triples | None:
    """
    add_domain_membership_triple для необязательного раздела: None → no-op.
    """
    if triples is None:
        return None
    return triples.add_domain_membership_triple(triple)
