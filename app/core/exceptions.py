"""
Excepciones de la API y del motor de odontograma.
"""

from fastapi import HTTPException, status


class UnknownToothStatusError(ValueError):
    """
    Estado de diente fuera del vocabulario canónico.
    Es un error de programación: los estados se validan al entrar al sistema.
    """

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Estado de diente desconocido: {value!r}")


class NotFoundException(HTTPException):
    """Recurso no encontrado (404)."""

    def __init__(self, resource: str = "Recurso", detail: str | None = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource} no encontrado",
        )


class ValidationException(HTTPException):
    """Error de validación de negocio (422)."""

    def __init__(self, detail: str = "Error de validación"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )
