"""
Eccezioni Custom per l'applicazione.
Progetto: Hotel Manager (Gestionale Albergo)

Definisce eccezioni specifiche del dominio per una gestione
centralizzata degli errori.

NOTA: BusinessValidationError è volutamente distinta da pydantic.ValidationError.
- pydantic.ValidationError: errori di formato/tipo nei dati di input (gestiti da FastAPI → 422)
- BusinessValidationError: violazioni delle regole di business logic (gestiti dal nostro handler → 422)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "BusinessValidationError",
    "ValidationError",       # alias di BusinessValidationError
    "ConflictError",
    "SourceUnavailableError",
    "PartialCommitError",
]


class AppException(Exception):
    """
    Base exception per l'applicazione.

    Tutte le eccezioni custom ereditano da questa classe base.

    Attributes:
        status_code: HTTP status code da restituire al client
        error_code: Identificativo univoco dell'errore per il frontend
        detail: Messaggio di errore leggibile per l'utente
        extra: Dizionario con dati aggiuntivi per il frontend
    """

    # Default values - overridden in subclasses
    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Inizializza l'eccezione.

        Args:
            detail: Messaggio di errore dettagliato
            error_code: Identificativo univoco (default: quello di classe)
            extra: Dati aggiuntivi da passare al frontend (default: None)
        """
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)


class NotFoundError(AppException):
    """
    Eccezione sollevata quando una risorsa non viene trovata.

    Utilizzata quando un'entità cercata (soggiorno, conto, ospite)
    non esiste nel database.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Risorsa non trovata",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Eccezione sollevata per violazioni delle regole di business logic.

    Eredita da ValueError per essere catturata dai validatori Pydantic.

    NON confondere con pydantic.ValidationError che gestisce
    la validazione dello schema/formato dei dati in input.

    Esempi di utilizzo:
        - "Data di arrivo mancante per il soggiorno"
        - "Lo sconto non può essere negativo"
        - "L'importo del pagamento deve essere positivo"

    Viene sempre sollevata prima di qualsiasi scrittura su database.
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str = "Validazione dati fallita",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Chiama AppException.__init__ direttamente per evitare ValueError
        AppException.__init__(self, detail, error_code, extra)


# Alias per compatibilità
ValidationError = BusinessValidationError


class ConflictError(AppException):
    """
    Eccezione sollevata per conflitti di stato.

    Utilizzata quando un'operazione non può essere eseguita
    a causa dello stato corrente della risorsa (soggiorno già chiuso,
    check-out concorrente sullo stesso ospite, acconto già presente).
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "Conflitto di stato",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class SourceUnavailableError(AppException):
    """
    Eccezione sollevata quando una sorgente addebiti di reparto o il
    valutatore fiscale non risponde.

    Il check-out viene interrotto prima di qualsiasi scrittura: senza
    tutti gli addebiti il conto sarebbe incompleto.
    """

    status_code: int = 503
    error_code: str = "SOURCE_UNAVAILABLE"

    def __init__(
        self,
        detail: str = "Sorgente dati non disponibile",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class PartialCommitError(AppException):
    """
    Eccezione sollevata quando il conto è già stato salvato ma uno dei
    passi successivi (righe, saldo reparti, stato soggiorno/camera) fallisce.

    Il conto NON viene annullato: `extra` contiene `folio_id` e
    `invoice_number` per la riconciliazione manuale o per ripetere
    il check-out, che ritrova lo stesso conto.
    """

    status_code: int = 500
    error_code: str = "PARTIAL_COMMIT"

    def __init__(
        self,
        detail: str = "Check-out completato solo parzialmente",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)

    @property
    def folio_id(self) -> Optional[str]:
        """UUID (stringa) del conto già salvato."""
        return (self.extra or {}).get("folio_id")
