"""
DomainMembershipTriple — Триплет членства в домене

CoRIM: Section 5.1.8 (domain-membership-triple-record)

Связывает окружение-домен (субъект) с непустым списком окружений-членов
(объекты). Описывает топологию составного аттестуемого устройства:
"это устройство состоит из этих компонентов".

Окружения хранятся по значению: при добавлении делается глубокая копия.
"""

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from src.core.errors import CoRIMValidationError

from .environment import Environment


# =============================================================================
# DOMAIN MEMBERSHIP TRIPLE
# =============================================================================


class DomainMembershipTriple(BaseModel):
    """
    Триплет членства: domain-id + members.

    CoRIM: domain-membership-triple-record = [domain-id, [+ environment-map]]

    Mutable модель: members дополняется через add_member; присваивание
    полей проходит валидацию и тоже копирует окружения.
    Пустой members допустим при создании, но не проходит validate().
    """

    domain: Environment = Field(..., alias="domain-id", description="Окружение-домен")
    members: list[Environment] = Field(
        default_factory=list, description="Окружения-члены домена"
    )

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    @field_validator("domain")
    @classmethod
    def copy_domain(cls, v: Environment) -> Environment:
        return v.model_copy(deep=True)

    @field_validator("members")
    @classmethod
    def copy_members(cls, v: list[Environment]) -> list[Environment]:
        return [env.model_copy(deep=True) for env in v]

    def validate(self) -> None:  # type: ignore[override]
        """
        Валидация триплета.

        Порядок проверок (до первой ошибки):
        1. domain-id — валидное окружение
        2. members непуст
        3. каждый member — валидное окружение

        Raises:
            CoRIMValidationError: С контекстом проваленной проверки
        """
        try:
            self.domain.validate()
        except CoRIMValidationError as err:
            raise CoRIMValidationError.wrap("domain-id validation failed", err)

        if not self.members:
            raise CoRIMValidationError("members validation failed: no member environments")

        for i, member in enumerate(self.members):
            try:
                member.validate()
            except CoRIMValidationError as err:
                raise CoRIMValidationError.wrap(
                    f"members validation failed: member at index {i}", err
                )

    def add_member(self, env: Environment) -> "DomainMembershipTriple":
        """
        Добавить окружение-член (копию).

        Returns:
            self — для цепочек вызовов
        """
        self.members.append(env.model_copy(deep=True))
        return self


# =============================================================================
# COLLECTION
# =============================================================================


class DomainMembershipTriples(RootModel[list[DomainMembershipTriple]]):
    """
    Упорядоченная коллекция триплетов членства.

    CoRIM: membership-triples = [+ domain-membership-triple-record]

    Дубликаты допускаются, порядок сохраняется. Пустая коллекция валидна.
    Триплеты хранятся по значению (глубокая копия при добавлении).
    """

    root: list[DomainMembershipTriple] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def copy_triples(cls, v: list[DomainMembershipTriple]) -> list[DomainMembershipTriple]:
        return [triple.model_copy(deep=True) for triple in v]

    @classmethod
    def new(cls) -> "DomainMembershipTriples":
        return cls([])

    def __len__(self) -> int:
        return len(self.root)

    def __iter__(self):  # type: ignore[override]
        return iter(self.root)

    def __getitem__(self, index: int) -> DomainMembershipTriple:
        return self.root[index]

    def is_empty(self) -> bool:
        return len(self.root) == 0

    def add(self, triple: DomainMembershipTriple | None) -> "DomainMembershipTriples":
        """
        Добавить копию триплета в конец коллекции. None игнорируется.

        Returns:
            self — для цепочек вызовов
        """
        if triple is not None:
            self.root.append(triple.model_copy(deep=True))
        return self

    def validate(self) -> None:  # type: ignore[override]
        """
        Валидация всех триплетов по порядку, до первой ошибки.

        Raises:
            CoRIMValidationError: "domain membership triple at index N: ..."
        """
        for i, triple in enumerate(self.root):
            try:
                triple.validate()
            except CoRIMValidationError as err:
                raise CoRIMValidationError.wrap(
                    f"domain membership triple at index {i}", err
                )


# =============================================================================
# NULL-SAFE HELPERS
# =============================================================================


def add_member(
    triple: DomainMembershipTriple | None, env: Environment
) -> DomainMembershipTriple | None:
    """
    add_member для необязательного триплета: при None — no-op, возвращает None.
    """
    if triple is None:
        return None
    return triple.add_member(env)


def add_triple(
    triples: DomainMembershipTriples | None, triple: DomainMembershipTriple | None
) -> DomainMembershipTriples | None:
    """
    add для необязательной коллекции: при None коллекции или триплете — no-op.
    """
    if triples is None:
        return None
    return triples.add(triple)
