"""
Database Schemas for the climate-control telemetry backend

Each Pydantic model corresponds to a MongoDB collection or a request body.
Readings live in "readings", thresholds in "thresholds".
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

DEFAULT_TEMPERATURE = 25.0
DEFAULT_HUMIDITY = 50.0

class Reading(BaseModel):
    device_name: Optional[str] = Field(None, description="Name reported by the device")
    temperature: Optional[float] = Field(None, description="Measured temperature, Celsius")
    humidity: Optional[float] = Field(None, description="Measured relative humidity %")
    set_temperature: Optional[float] = Field(None, description="Temperature setpoint in use")
    set_humidity: Optional[float] = Field(None, description="Humidity setpoint in use")
    # heater/exhaust/aux boards
    heater_status: Optional[float] = Field(None, description="Heater relay state")
    exhaust_status: Optional[float] = Field(None, description="Exhaust relay state")
    aux_status: Optional[float] = Field(None, description="Auxiliary relay state")
    # fan boards
    ac_fan_status: Optional[float] = Field(None, description="AC fan state")
    dc_fan_status: Optional[float] = Field(None, description="DC fan state")
    circular_fan_status: Optional[float] = Field(None, description="Circulation fan state")
    operation_mode: Optional[str] = Field(None, description="Controller mode, e.g. auto/manual")
    device_status: Optional[str] = Field(None, description="Free-form status string")
    timestamp: Optional[datetime] = Field(None, description="Reading time, defaults to ingestion time")

class Threshold(BaseModel):
    device_name: str = Field(..., description="Unique device name")
    temperature: float = Field(DEFAULT_TEMPERATURE, description="Temperature setpoint, Celsius")
    humidity: float = Field(DEFAULT_HUMIDITY, description="Humidity setpoint %")
    last_updated: Optional[datetime] = Field(None, description="Last write time")

class ThresholdUpdate(BaseModel):
    device_name: Optional[str] = Field(None, description="Device to configure")
    temperature: Optional[float] = None
    humidity: Optional[float] = None
