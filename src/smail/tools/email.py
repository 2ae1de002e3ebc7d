"""Email assistant tool palette: calendar lookup, person lookup, finalize draft.

The calendar and directory tools return fixed data standing in for a
calendar provider and an org directory/CRM.
"""

from typing import Any

from pydantic import BaseModel, Field

from smail.tools.base import BaseTool, NoParams

CHECK_CALENDAR = "check-calendar"
SEARCH_PERSON = "search-person"
WRITE_EMAIL = "write-email"

EMAIL_TOOL_ORDER = (CHECK_CALENDAR, SEARCH_PERSON, WRITE_EMAIL)

AVAILABLE_TIMES = [
    "2025-08-18T09:00:00Z",
    "2025-08-18T11:00:00Z",
    "2025-08-18T14:30:00Z",
    "2025-08-19T10:00:00Z",
    "2025-08-19T16:00:00Z",
]

PERSON_PROFILE: dict[str, Any] = {
    "name": "Avery Chen",
    "role": "VP of Product (boss)",
    "emailStyleSummary": (
        "Prefers concise bullets, clear action items, and calendar links. "
        "Appreciates context but dislikes fluff."
    ),
    "notes": [
        "Responds quickly before 10am local time",
        "Prefers weekday mornings for meetings",
    ],
}


class CheckCalendarTool(BaseTool[NoParams]):
    """Return available meeting slots."""

    name = CHECK_CALENDAR
    description = (
        "Check the user's calendar and return available time slots for scheduling meetings"
    )
    parameters = NoParams

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency

    async def execute(self, params: NoParams) -> dict[str, Any]:
        await self.simulate_latency()
        return {"availableTimes": list(AVAILABLE_TIMES)}


class SearchPersonParams(BaseModel):
    query: str = Field(description="Name or email of the person to look up")


class SearchPersonTool(BaseTool[SearchPersonParams]):
    """Return a communication profile for a person."""

    name = SEARCH_PERSON
    description = (
        "Search internal directory/CRM for a person and return a brief "
        "communication profile useful for email replies"
    )
    parameters = SearchPersonParams

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency

    async def execute(self, params: SearchPersonParams) -> dict[str, Any]:
        await self.simulate_latency()
        return {**PERSON_PROFILE, "notes": list(PERSON_PROFILE["notes"])}


class WriteEmailParams(BaseModel):
    email: str = Field(description="The fully drafted email content (subject + body)")


class WriteEmailTool(BaseTool[WriteEmailParams]):
    """Finalize a drafted email; the result is handed to the UI as an action."""

    name = WRITE_EMAIL
    description = "Finalize a drafted email and return it for frontend handling"
    parameters = WriteEmailParams

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency

    async def execute(self, params: WriteEmailParams) -> dict[str, Any]:
        await self.simulate_latency()
        return {"email": params.email}


def email_tools(latency: float = 0.0) -> list[BaseTool[Any]]:
    """The email palette in its prescribed call order."""
    return [
        CheckCalendarTool(latency),
        SearchPersonTool(latency),
        WriteEmailTool(latency),
    ]
