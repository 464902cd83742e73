from typing import Optional, TypedDict

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    username: str
    password: str


class CreatePatientRequest(BaseModel):
    # The backend owns the patient schema; unknown fields are passed through.
    model_config = ConfigDict(extra="allow")

    name: str
    surname: Optional[str] = None
    age: Optional[int] = None
    doctor_id: Optional[str] = None


class Doctor(TypedDict, total=False):
    id: str
    name: str
    surname: str
    specialization: str


class Patient(TypedDict, total=False):
    id: str
    name: str
    surname: str
    age: int
    doctor_id: str