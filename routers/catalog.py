from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from booking_schemas import Destination, VacationPackage
from persistence import crud
from persistence.db import get_db

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/vacations", response_model=List[VacationPackage])
def list_vacations(
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    duration: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Vacation packages, optionally filtered by price range and duration."""
    packages = crud.list_vacation_packages(db, min_price=min_price, max_price=max_price, duration=duration)
    return [crud.package_to_pydantic(p) for p in packages]


@router.get("/vacations/{package_id}", response_model=VacationPackage)
def get_vacation(package_id: int, db: Session = Depends(get_db)):
    pkg = crud.get_vacation_package(db, package_id)
    if not pkg:
        raise HTTPException(status_code=404, detail="Vacation package not found")
    return crud.package_to_pydantic(pkg)


@router.get("/destinations", response_model=List[Destination])
def list_destinations(db: Session = Depends(get_db)):
    return [crud.destination_to_pydantic(d) for d in crud.list_destinations(db)]


@router.get("/destinations/{destination_id}", response_model=Destination)
def get_destination(destination_id: int, db: Session = Depends(get_db)):
    dest = crud.get_destination(db, destination_id)
    if not dest:
        raise HTTPException(status_code=404, detail="Destination not found")
    return crud.destination_to_pydantic(dest)
