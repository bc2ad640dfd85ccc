"""
ValueTriple — Триплеты reference-values / endorsed-values

CoRIM: Section 5.1.5 (reference-triple-record), 5.1.6 (endorsed-triple-record)

Окружение + непустой список измерений. Тот же контракт, что и у
DomainMembershipTriple: fail-fast validate(), add() с игнорированием None.
"""

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from src.core.errors import CoRIMValidationError

from .environment import Environment
from .measurement import Measurement


class ValueTriple(BaseModel):
    """
    Триплет значений: environment + measurements.

    CoRIM: [environment-map, [+ measurement-map]]
    """

    environment: Environment = Field(..., description="Окружение")
    measurements: list[Measurement] = Field(
        default_factory=list, description="Измерения окружения"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("environment")
    @classmethod
    def copy_environment(cls, v: Environment) -> Environment:
        return v.model_copy(deep=True)

    def validate(self) -> None:  # type: ignore[override]
        """
        Raises:
            CoRIMValidationError: environment → непустота → каждое измерение
        """
        try:
            self.environment.validate()
        except CoRIMValidationError as err:
            raise CoRIMValidationError.wrap("environment validation failed", err)

        if not self.measurements:
            raise CoRIMValidationError("measurements validation failed: no measurements")

        for i, measurement in enumerate(self.measurements):
            try:
                measurement.validate()
            except CoRIMValidationError as err:
                raise CoRIMValidationError.wrap(
                    f"measurements validation failed: measurement at index {i}", err
                )

    def add_measurement(self, measurement: Measurement) -> "ValueTriple":
        self.measurements.append(measurement)
        return self


class ValueTriples(RootModel[list[ValueTriple]]):
    """Коллекция reference-values или endorsed-values триплетов"""

    root: list[ValueTriple] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def copy_triples(cls, v: list[ValueTriple]) -> list[ValueTriple]:
        return [triple.model_copy(deep=True) for triple in v]

    @classmethod
    def new(cls) -> "ValueTriples":
        return cls([])

    def __len__(self) -> int:
        return len(self.root)

    def __iter__(self):  # type: ignore[override]
        return iter(self.root)

    def __getitem__(self, index: int) -> ValueTriple:
        return self.root[index]

    def is_empty(self) -> bool:
        return len(self.root) == 0

    def add(self, triple: ValueTriple | None) -> "ValueTriples":
        if triple is not None:
            self.root.append(triple.model_copy(deep=True))
        return self

    def validate(self) -> None:  # type: ignore[override]
        for i, triple in enumerate(self.root):
            try:
                triple.validate()
            except CoRIMValidationError as err:
                raise CoRIMValidationError.wrap(f"value triple at index {i}", err)
