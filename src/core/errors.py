"""
Иерархия ошибок CoRIM/CoMID

CoRIM: Section 5 (validity of concise-mid-tag)

Семантическая валидация (validate()) бросает CoRIMValidationError, каждый
уровень оборачивает причину своим контекстом через `raise ... from err`.
Ошибки wire-формата (CBOR/JSON) — CodecError и наследники.
"""


class CoRIMError(Exception):
    """Базовая ошибка пакета"""


class CoRIMValidationError(CoRIMError, ValueError):
    """
    Запись не удовлетворяет семантическим инвариантам.

    Сообщение содержит полную цепочку контекста, например:
    "triples validation failed: domain membership triples: domain membership
    triple at index 0: domain-id validation failed: environment must not be empty"
    """

    def __init__(self, message: str, context: str | None = None):
        self.context = context
        super().__init__(message)

    @classmethod
    def wrap(cls, context: str, cause: Exception) -> "CoRIMValidationError":
        """
        Обернуть причину контекстом текущего уровня.

        Args:
            context: Префикс уровня (например, "member at index 2")
            cause: Исходная ошибка

        Returns:
            Новая ошибка с сообщением "context: cause"
        """
        err = cls(f"{context}: {cause}", context=context)
        err.__cause__ = cause
        return err

    def innermost(self) -> BaseException:
        """Самая глубокая причина в цепочке"""
        err: BaseException = self
        while err.__cause__ is not None:
            err = err.__cause__
        return err


class CodecError(CoRIMError):
    """Ошибка кодирования/декодирования"""


class EncodeError(CodecError):
    """Не удалось сериализовать запись"""


class DecodeError(CodecError, ValueError):
    """Входные байты/текст не являются корректной записью"""
