from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Recurso no encontrado"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class InvalidStatusTransitionError(HTTPException):
    def __init__(self, current_status: str, new_status: str):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Transición de estado no permitida: {current_status} → {new_status}"
        )


class ReconciliationError(Exception):
    """Fallo recalculando el estado general de un BuyerOrder (no crítico)"""

    def __init__(self, buyer_order_id: int, message: str):
        self.buyer_order_id = buyer_order_id
        super().__init__(f"BuyerOrder {buyer_order_id}: {message}")
