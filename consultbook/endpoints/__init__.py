from fastapi import APIRouter

from . import availability, bookings, slots


ROUTERS: list[APIRouter] = [availability.router, slots.router, bookings.router]
