"""Test data models shared by data loaders, fixtures and the API client.

Data files on disk use camelCase keys (``searchQueries``, ``zipCode``); the
models expose snake_case attributes and accept either spelling on input.
"""

from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

UserRole = Literal["admin", "user", "guest"]
QueryCategory = Literal["valid", "invalid", "edge-case", "performance"]
ExpectedBehavior = Literal["pass", "fail"]


class CamelModel(BaseModel):
    """Base model accepting camelCase keys from data files."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Address(CamelModel):
    """Postal address of a test user."""

    street: str = Field(description="Street line")
    city: str = Field(description="City")
    state: str = Field(description="State or region")
    country: str = Field(description="Country")
    zip_code: str = Field(description="Postal code")


class UserPreferences(CamelModel):
    """UI preferences of a test user."""

    language: str = Field(default="en", description="Preferred language")
    theme: Literal["light", "dark"] = Field(default="light", description="UI theme")
    notifications: bool = Field(default=True, description="Notifications enabled")
    newsletter: bool = Field(default=False, description="Newsletter subscription")


class UserProfile(CamelModel):
    """Personal details of a test user."""

    first_name: str = Field(description="First name")
    last_name: str = Field(description="Last name")
    date_of_birth: str = Field(description="Date of birth (YYYY-MM-DD)")
    address: Address = Field(description="Postal address")
    preferences: UserPreferences = Field(
        default_factory=UserPreferences, description="User preferences"
    )


class User(CamelModel):
    """Test account."""

    id: str = Field(description="User identifier")
    username: str = Field(description="Login name")
    email: str = Field(description="Email address")
    password: str = Field(description="Password")
    role: UserRole = Field(description="Account role")
    profile: UserProfile = Field(description="User profile")


class SearchQuery(CamelModel):
    """Search query with its expected outcome."""

    id: str = Field(description="Query identifier")
    query: str = Field(description="Search text")
    expected_results: int = Field(description="Expected minimum number of results")
    category: QueryCategory = Field(description="Query category")
    description: str = Field(description="Human readable description")
    expected_behavior: ExpectedBehavior = Field(description="Expected test outcome")


class UrlData(CamelModel):
    """URL to check with its expected status."""

    id: str = Field(description="URL identifier")
    name: str = Field(description="Display name")
    url: str = Field(description="Absolute URL")
    environment: str = Field(description="Environment the URL belongs to")
    expected_status: int = Field(default=200, description="Expected HTTP status")
    timeout: int = Field(default=30000, description="Timeout in milliseconds")


class Credentials(BaseModel):
    """Environment login credentials."""

    username: str = Field(description="Login name")
    password: str = Field(description="Password")


class Environment(CamelModel):
    """Deployment environment description."""

    name: str = Field(description="Environment name")
    base_url: str = Field(description="Web application base URL")
    api_url: str = Field(description="API base URL")
    features: List[str] = Field(default_factory=list, description="Enabled features")
    credentials: Credentials = Field(description="Login credentials")


class TestData(CamelModel):
    """Complete data set for one environment."""

    __test__ = False

    users: List[User] = Field(default_factory=list, description="Test users")
    search_queries: List[SearchQuery] = Field(
        default_factory=list, description="Search queries"
    )
    urls: List[UrlData] = Field(default_factory=list, description="URLs to check")
    environments: List[Environment] = Field(
        default_factory=list, description="Known environments"
    )


class ApiResponse(CamelModel, Generic[T]):
    """HTTP response captured by the API client."""

    status: int = Field(description="HTTP status code")
    status_text: str = Field(default="", description="HTTP reason phrase")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers")
    data: Optional[T] = Field(default=None, description="Parsed body")
    response_time: float = Field(description="Round trip time in milliseconds")

    @property
    def ok(self) -> bool:
        """Whether the status is in the 2xx range."""
        return 200 <= self.status < 300


JsonResponse = ApiResponse[Any]
