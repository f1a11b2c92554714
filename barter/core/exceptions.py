"""
Excepciones del núcleo de intercambios.

Cada excepción expone un ``code`` estable que la capa API traduce a su
respuesta de transporte (por ejemplo FORBIDDEN -> 403).
"""


class BarterException(Exception):
    """Excepción base para todas las excepciones de Barter."""

    code = "ERROR"

    def __init__(self, message: str = "Error en la aplicación"):
        self.message = message
        super().__init__(self.message)


class NotFoundException(BarterException):
    """Excepción cuando un recurso no se encuentra."""

    code = "NOT_FOUND"

    def __init__(self, message: str = "Recurso no encontrado"):
        super().__init__(message)


class ForbiddenException(BarterException):
    """Excepción cuando el usuario no es dueño del recurso que intenta modificar."""

    code = "FORBIDDEN"

    def __init__(self, message: str = "Acceso prohibido"):
        super().__init__(message)


class BadRequestException(BarterException):
    """Excepción cuando la solicitud es inválida."""

    code = "BAD_REQUEST"

    def __init__(self, message: str = "Solicitud inválida"):
        super().__init__(message)


class ConflictException(BarterException):
    """Excepción cuando hay un conflicto con el estado actual."""

    code = "CONFLICT"

    def __init__(self, message: str = "Conflicto con el recurso"):
        super().__init__(message)


class SelfInterestException(BadRequestException):
    """El usuario intentó mostrar interés en su propia oferta."""

    code = "SELF_INTEREST"

    def __init__(self, message: str = "No puedes mostrar interés en tu propia oferta"):
        super().__init__(message)


class OfferUnavailableException(BadRequestException):
    """La oferta existe pero ya no está activa."""

    code = "OFFER_UNAVAILABLE"

    def __init__(self, message: str = "La oferta no está disponible"):
        super().__init__(message)


class DuplicateInterestException(ConflictException):
    """Ya existe un interés para el par (oferta, usuario)."""

    code = "DUPLICATE_INTEREST"

    def __init__(self, message: str = "Ya has mostrado interés en esta oferta"):
        super().__init__(message)


class BadStatusException(BadRequestException):
    """La transición pedida no es válida desde el estado actual."""

    code = "BAD_STATUS"

    def __init__(self, message: str = "Transición de estado inválida"):
        super().__init__(message)


class AlreadyRealizedException(BadStatusException):
    """El interés ya fue marcado como realizado."""

    code = "ALREADY_REALIZED"

    def __init__(self, message: str = "El interés ya fue realizado"):
        super().__init__(message)


class AlreadyCompletedException(ConflictException):
    """Ambas partes ya confirmaron: el intercambio es definitivo."""

    code = "ALREADY_COMPLETED"

    def __init__(self, message: str = "El intercambio ya fue completado por ambas partes"):
        super().__init__(message)


class InternalException(BarterException):
    """Fallo inesperado después de la validación (persistencia, invariantes rotas)."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Error interno"):
        super().__init__(message)
