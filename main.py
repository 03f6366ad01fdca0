import logging
from datetime import date
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends

import config
from api.schemas import (
    # Reservation
    ReservationFormRequest, ChangeStatusRequest, AddExtrasRequest,
    ReservationResponse, PricingSummaryResponse, PreviewResponse, ExtrasResponse,
    # Availability
    CheckAvailabilityRequest, AvailabilityResponse, ConflictResponse,
    RoomResponse, DailyRoomStatusResponse, RoomOccupancyResponse,
    # Expenses & reports
    CreateExpenseRequest, UpdateExpenseRequest, ExpenseResponse, ReportResponse,
    # Auth
    OperatorResponse,
)

from api.dependencies import get_current_active_operator
from domain.auth import Operator

from application.draft_builder import ReservationDraftBuilder
from application.services import ReservationService, AvailabilityService, ExpenseService, ReportService
from domain.availability import AvailabilityResolver
from domain.coercion import normalize_room_id
from domain.entities import Reservation, Expense
from domain.enums import ReservationStatus, SinglePricingMode, GroupPricingMode, STATUS_TRANSITIONS
from domain.pricing import PricingEngine, PricingSummary
from domain.value_objects import ExtrasSet, RoomCatalogue
from infrastructure.invoicing import LoggingInvoiceIssuer
from infrastructure.logging_utils import configure_logging
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryExpenseRepository
)

configure_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Hotel Back-Office API",
    description="Reservation pricing and room availability for the hotel back office",
    version="1.0.0"
)

# Initialize repositories and domain components
catalogue = RoomCatalogue(room_types=config.ROOM_TYPES, capacities=config.ROOM_CAPACITIES)
reservation_repo = InMemoryReservationRepository()
expense_repo = InMemoryExpenseRepository()
pricing_engine = PricingEngine()
resolver = AvailabilityResolver(catalogue)
draft_builder = ReservationDraftBuilder(catalogue)
invoice_issuer = LoggingInvoiceIssuer()
logger.info("Room catalogue loaded: %d rooms", len(catalogue.rooms()))

# Dependency injection
def get_reservation_service() -> ReservationService:
    return ReservationService(reservation_repo, resolver, pricing_engine, draft_builder, invoice_issuer)

def get_availability_service() -> AvailabilityService:
    return AvailabilityService(reservation_repo, resolver)

def get_expense_service() -> ExpenseService:
    return ExpenseService(expense_repo)

def get_report_service() -> ReportService:
    return ReportService(reservation_repo, expense_repo, pricing_engine)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses(current_operator: Operator = Depends(get_current_active_operator)):
    """Get all ReservationStatus values and the allowed transitions"""
    return {
        "values": [item.value for item in ReservationStatus],
        "transitions": {
            source.value: sorted(target.value for target in targets)
            for source, targets in STATUS_TRANSITIONS.items()
        },
        "description": "Reservation status values: in_attesa, confermata, annullata, conclusa"
    }

@app.get("/api/enums/pricing-mode", tags=["Enum Reference"])
async def get_pricing_modes(current_operator: Operator = Depends(get_current_active_operator)):
    """Get the pricing modes of single and group reservations"""
    return {
        "single": [item.value for item in SinglePricingMode],
        "group": [item.value for item in GroupPricingMode],
        "description": "Single: perNight, total. Group: perNightPerRoom, perNightUniform, totalForStay"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.get("/api/me", response_model=OperatorResponse, tags=["Auth"])
async def read_operator_me(current_operator: Operator = Depends(get_current_active_operator)):
    return current_operator

# ============================================================================
# ROOM CATALOGUE ENDPOINTS
# ============================================================================

@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def get_rooms(current_operator: Operator = Depends(get_current_active_operator)):
    """Get the room catalogue"""
    return [
        RoomResponse(room=room, room_type=catalogue.room_type(room), capacity=catalogue.capacity(room))
        for room in catalogue.rooms()
    ]

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations/preview", response_model=PreviewResponse, tags=["Reservations"])
async def preview_reservation(
    request: ReservationFormRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Price an unsaved form without storing it"""
    draft, summary = service.preview(request.to_form())
    return PreviewResponse(
        reservation=_reservation_to_response(draft),
        pricing=_summary_to_response(summary),
    )

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: ReservationFormRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Create new reservation"""
    try:
        reservation = await service.create_reservation(request.to_form())
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    status: Optional[ReservationStatus] = None,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get all reservations, optionally filtered by status"""
    reservations = await service.get_all_reservations(status)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}/form", tags=["Reservations"])
async def get_reservation_form(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Form state of a stored reservation, ready to be edited and submitted back"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return service.builder.to_form(reservation)

@app.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def update_reservation(
    reservation_id: str,
    request: ReservationFormRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Replace reservation with the submitted form"""
    try:
        reservation = await service.update_reservation(reservation_id, request.to_form())
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.delete("/api/reservations/{reservation_id}", status_code=204, tags=["Reservations"])
async def delete_reservation(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Delete reservation"""
    if not await service.delete_reservation(reservation_id):
        raise HTTPException(status_code=404, detail="Reservation not found")

@app.get("/api/reservations/{reservation_id}/pricing", response_model=PricingSummaryResponse, tags=["Reservations"])
async def get_reservation_pricing(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Reconciled price and amount due"""
    summary = await service.pricing_summary(reservation_id)
    if not summary:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _summary_to_response(summary)

@app.post("/api/reservations/{reservation_id}/status", response_model=ReservationResponse, tags=["Reservations"])
async def change_reservation_status(
    reservation_id: str,
    request: ChangeStatusRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Change reservation status"""
    try:
        reservation = await service.change_status(reservation_id, request.status)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/reservations/{reservation_id}/extras", response_model=ReservationResponse, tags=["Reservations"])
async def add_reservation_extras(
    reservation_id: str,
    request: AddExtrasRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Top up extras on one room (group) or on the stay (single)"""
    top_up = ExtrasSet(
        extra_bar=request.extra_bar,
        extra_servizi=request.extra_servizi,
        pet_allowed=request.pet_allowed,
        crib=request.crib,
    )
    room = normalize_room_id(request.room)
    try:
        reservation = await service.add_extras(reservation_id, top_up, room)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/reservations/{reservation_id}/align-price", response_model=ReservationResponse, tags=["Reservations"])
async def align_reservation_price(
    reservation_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Replace the saved price with the calculated total"""
    try:
        reservation = await service.align_price(reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ============================================================================
# AVAILABILITY ENDPOINTS
# ============================================================================

@app.post("/api/availability/check", response_model=AvailabilityResponse, tags=["Availability"])
async def check_availability(
    request: CheckAvailabilityRequest,
    service: AvailabilityService = Depends(get_availability_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Free rooms for a stay and the reservations holding the others"""
    result = await service.check_availability(request.check_in, request.check_out, request.exclude_id)
    requested = [normalize_room_id(room) for room in request.rooms]
    return AvailabilityResponse(
        check_in=request.check_in,
        check_out=request.check_out,
        available_rooms=result.available_rooms,
        conflicts={
            room: [ConflictResponse(**info.model_dump(mode="json")) for info in infos]
            for room, infos in result.conflicts.items()
        },
        requested_rooms=requested,
        conflicting_rooms=result.conflicting_rooms(requested),
    )

@app.get("/api/availability/daily", response_model=DailyRoomStatusResponse, tags=["Availability"])
async def get_daily_room_status(
    day: Optional[date] = None,
    service: AvailabilityService = Depends(get_availability_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Arrivals, departures, stayovers and free rooms of one day (default today)"""
    try:
        status = await service.daily_room_status(day or date.today())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DailyRoomStatusResponse(
        day=status.day,
        staying=[RoomOccupancyResponse(**item.model_dump()) for item in status.staying],
        checking_in=[RoomOccupancyResponse(**item.model_dump()) for item in status.checking_in],
        checking_out=[RoomOccupancyResponse(**item.model_dump()) for item in status.checking_out],
        available=status.available,
    )

# ============================================================================
# EXPENSE ENDPOINTS
# ============================================================================

@app.post("/api/expenses", response_model=ExpenseResponse, status_code=201, tags=["Expenses"])
async def create_expense(
    request: CreateExpenseRequest,
    service: ExpenseService = Depends(get_expense_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Record an operating expense"""
    try:
        expense = await service.add_expense(
            description=request.description,
            amount=request.amount,
            expense_date=request.expense_date,
            category=request.category,
            reservation_id=request.reservation_id
        )
        return _expense_to_response(expense)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/expenses", response_model=List[ExpenseResponse], tags=["Expenses"])
async def get_all_expenses(
    service: ExpenseService = Depends(get_expense_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Get all expenses, newest first"""
    expenses = await service.get_all_expenses()
    return [_expense_to_response(e) for e in expenses]

@app.get("/api/expenses/{expense_id}", response_model=ExpenseResponse, tags=["Expenses"])
async def get_expense(
    expense_id: str,
    service: ExpenseService = Depends(get_expense_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    expense = await service.get_expense(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return _expense_to_response(expense)

@app.put("/api/expenses/{expense_id}", response_model=ExpenseResponse, tags=["Expenses"])
async def update_expense(
    expense_id: str,
    request: UpdateExpenseRequest,
    service: ExpenseService = Depends(get_expense_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    try:
        expense = await service.update_expense(expense_id, **request.model_dump(exclude_unset=True))
        if not expense:
            raise HTTPException(status_code=404, detail="Expense not found")
        return _expense_to_response(expense)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.delete("/api/expenses/{expense_id}", status_code=204, tags=["Expenses"])
async def delete_expense(
    expense_id: str,
    service: ExpenseService = Depends(get_expense_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    if not await service.delete_expense(expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")

# ============================================================================
# REPORT ENDPOINTS
# ============================================================================

@app.get("/api/reports/summary", response_model=ReportResponse, tags=["Reports"])
async def get_report_summary(
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: str = ReservationStatus.CONCLUSA.value,
    service: ReportService = Depends(get_report_service),
    expense_service: ExpenseService = Depends(get_expense_service),
    current_operator: Operator = Depends(get_current_active_operator)
):
    """Bookings, revenue, expenses and profit over a period"""
    try:
        report = await service.summary(start=start, end=end, status=status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    expenses_by_category = await expense_service.totals_by_category(start, end)
    return ReportResponse(**report, expenses_by_category=expenses_by_category, currency=config.CURRENCY)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    _, per_room = pricing_engine.extras(reservation)
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        is_group=reservation.is_group,
        guest_name=reservation.guest_name,
        agency_group_name=reservation.agency_group_name,
        phone_number=reservation.phone_number,
        total_people=reservation.total_people,
        additional_notes=reservation.additional_notes,
        room_numbers=reservation.room_numbers,
        check_in_date=reservation.check_in_date,
        check_out_date=reservation.check_out_date,
        pricing_mode=reservation.pricing.kind,
        pricing=reservation.pricing.model_dump(mode="json"),
        room_prices=reservation.room_prices,
        extras={room: ExtrasResponse(**item.model_dump()) for room, item in per_room.items()},
        deposit=reservation.deposit,
        final_price_override=reservation.final_price_override,
        price=reservation.price,
        price_with_extras=reservation.price_with_extras,
        price_without_extras=reservation.price_without_extras,
        currency=config.CURRENCY,
        status=reservation.status.value,
        payment_completed=reservation.payment_completed,
        invoice_number=reservation.invoice_number,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        version=reservation.version
    )

def _summary_to_response(summary: PricingSummary) -> PricingSummaryResponse:
    """Convert PricingSummary to PricingSummaryResponse"""
    values = summary.model_dump()
    values["per_room_extras"] = {
        room: ExtrasResponse(**item.model_dump()) for room, item in summary.per_room_extras.items()
    }
    return PricingSummaryResponse(**values, currency=config.CURRENCY)

def _expense_to_response(expense: Expense) -> ExpenseResponse:
    """Convert Expense entity to ExpenseResponse"""
    return ExpenseResponse(
        expense_id=expense.expense_id,
        description=expense.description,
        amount=expense.amount,
        expense_date=expense.expense_date,
        category=expense.category,
        reservation_id=expense.reservation_id,
        created_at=expense.created_at
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
