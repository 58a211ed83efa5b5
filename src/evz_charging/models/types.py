"""Closed vocabularies shared by configuration, requests and results."""

from typing import Literal

PaymentMethod = Literal["CorporatePay", "Personal Wallet", "Card", "Mobile Money"]

CORPORATE_METHOD: PaymentMethod = "CorporatePay"

CorporateProgramStatus = Literal[
    "Eligible",
    "Not linked",
    "Not eligible",
    "Deposit depleted",
    "Credit limit exceeded",
    "Billing delinquency",
]

Outcome = Literal["Allowed", "Approval required", "Blocked"]

ReasonCode = Literal[
    "PROGRAM",
    "STATION",
    "ZONE",
    "COSTCENTER",
    "PURPOSE",
    "VEHICLE",
    "THRESHOLD",
    "LIMIT",
    "OK",
]

ScheduleMode = Literal["Now", "Schedule"]

CorporateState = Literal["Available", "Requires approval", "Not available"]
