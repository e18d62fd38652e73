from fastapi import APIRouter, Depends, status
from devevent.schemas import BookingCreate, BookingResponse
from devevent.db.session import get_session
from devevent.services.booking_service import BookingService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/bookings", tags=["bookings"])

def get_booking_service(session: AsyncSession = Depends(get_session)) -> BookingService:
    return BookingService(session)

@router.post("", status_code=status.HTTP_201_CREATED, response_model=BookingResponse)
async def create_booking_endpoint(
    payload: BookingCreate,
    booking_service: BookingService = Depends(get_booking_service)
):
    booking = await booking_service.create_booking(payload)
    return {"success": True, "booking": booking}
