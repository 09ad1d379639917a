"""
Configuration management using Pydantic models loaded from YAML.
"""

import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import (
    AvailabilityRule,
    DateOverrideRule,
    ParticipantAvailability,
    TimeOfDay,
    WorkingHoursRule,
)


def _validate_time_string(value: str) -> str:
    """Ensure a time string is a valid HH:MM."""
    TimeOfDay.parse(value)
    return value


def _validate_weekdays(value: List[int]) -> List[int]:
    """Ensure weekdays are in valid range and deduplicated."""
    invalid_days = [day for day in value if day not in range(7)]
    if invalid_days:
        raise ValueError(f"Weekdays must be between 0 (Sunday) and 6 (Saturday), got {invalid_days}")
    # Preserve order while removing duplicates
    return list(dict.fromkeys(value))


def _validate_timezone(value: str) -> str:
    try:
        pendulum.timezone(value)
    except Exception as exc:
        raise ValueError(f"Unknown timezone: '{value}'") from exc
    return value


class DefaultsConfig(BaseModel):
    """Default settings for search and for participants without own rules."""
    duration_minutes: int = 30
    working_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])  # Monday - Friday
    start_time: str = "09:00"
    end_time: str = "17:00"

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure meeting duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: List[int]) -> List[int]:
        return _validate_weekdays(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_times(cls, value: str) -> str:
        return _validate_time_string(value)

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the configured window opens before it closes."""
        if TimeOfDay.parse(self.end_time) <= TimeOfDay.parse(self.start_time):
            raise ValueError("end_time must be later than start_time")
        return self

    def to_rule(self) -> WorkingHoursRule:
        return WorkingHoursRule(
            days=frozenset(self.working_days),
            start_time=TimeOfDay.parse(self.start_time),
            end_time=TimeOfDay.parse(self.end_time),
        )


class WorkingHoursConfig(BaseModel):
    """A recurring weekly working-hours rule."""
    days: List[int]
    start: str = "09:00"
    end: str = "17:00"

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: List[int]) -> List[int]:
        return _validate_weekdays(value)

    @field_validator("start", "end")
    @classmethod
    def validate_times(cls, value: str) -> str:
        return _validate_time_string(value)

    @model_validator(mode="after")
    def validate_order(self) -> "WorkingHoursConfig":
        if TimeOfDay.parse(self.end) < TimeOfDay.parse(self.start):
            raise ValueError(f"Working hours end {self.end} is before start {self.start}")
        return self

    def to_rule(self) -> WorkingHoursRule:
        return WorkingHoursRule(
            days=frozenset(self.days),
            start_time=TimeOfDay.parse(self.start),
            end_time=TimeOfDay.parse(self.end),
        )


class DateOverrideConfig(BaseModel):
    """
    Availability for one specific date, replacing the working hours.

    Use ``end: "23:59"`` for "until midnight" and identical start and end
    (e.g. ``"00:00"``) to mark the whole day unavailable.
    """
    date: datetime.date
    start: str = "00:00"
    end: str = "00:00"

    @field_validator("start", "end")
    @classmethod
    def validate_times(cls, value: str) -> str:
        return _validate_time_string(value)

    @model_validator(mode="after")
    def validate_order(self) -> "DateOverrideConfig":
        if TimeOfDay.parse(self.end) < TimeOfDay.parse(self.start):
            raise ValueError(f"Override end {self.end} is before start {self.start} on {self.date}")
        return self

    def to_rule(self) -> DateOverrideRule:
        return DateOverrideRule(
            date=self.date,
            start_time=TimeOfDay.parse(self.start),
            end_time=TimeOfDay.parse(self.end),
        )


class ParticipantConfig(BaseModel):
    """Participant configuration with their availability rules."""
    name: str  # Used as alias
    email: str
    calendar_id: str = ""  # Optional: for busy calendar mapping
    timezone: Optional[str] = None
    working_hours: List[WorkingHoursConfig] = Field(default_factory=list)
    date_overrides: List[DateOverrideConfig] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        return _validate_timezone(value) if value is not None else value

    def to_availability(self, defaults: DefaultsConfig, default_timezone: str) -> ParticipantAvailability:
        """
        Convert into the domain rule set.

        Participants without own working hours fall back to the defaults.
        """
        rules: List[AvailabilityRule] = [item.to_rule() for item in self.working_hours]
        if not rules:
            rules.append(defaults.to_rule())
        rules.extend(item.to_rule() for item in self.date_overrides)

        return ParticipantAvailability(
            email=self.email.lower(),
            timezone=self.timezone or default_timezone,
            rules=tuple(rules),
        )


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    participants: List[ParticipantConfig] = Field(default_factory=list)
    busy_calendar_file: Optional[Path] = None
    log_level: str = "WARNING"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return _validate_timezone(value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: '{value}'")
        return level

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, value: List[ParticipantConfig]) -> List[ParticipantConfig]:
        """Ensure participant aliases and emails are unique."""
        seen_names: set[str] = set()
        seen_emails: set[str] = set()
        for participant in value:
            name_key = participant.name.lower()
            email_key = participant.email.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate participant name detected: {participant.name}")
            if email_key in seen_emails:
                raise ValueError(f"Duplicate participant email detected: {participant.email}")
            seen_names.add(name_key)
            seen_emails.add(email_key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``busy_calendar_file`` paths are resolved against the
        directory of the config file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.busy_calendar_file is not None and not config.busy_calendar_file.is_absolute():
            config.busy_calendar_file = config_path.parent / config.busy_calendar_file
        return config

    def find_participant_by_name(self, name: str) -> ParticipantConfig | None:
        """Find a participant by their name (alias)."""
        for participant in self.participants:
            if participant.name.lower() == name.lower():
                return participant
        return None

    def find_participant_by_email(self, email: str) -> ParticipantConfig | None:
        """Find a participant by their email."""
        for participant in self.participants:
            if participant.email.lower() == email.lower():
                return participant
        return None

    def resolve_participant(self, identifier: str) -> ParticipantConfig:
        """
        Resolve a participant identifier (name/alias or email) to its configuration.

        Args:
            identifier: Name/alias or email address

        Returns:
            The matching participant

        Raises:
            ValueError: If identifier cannot be resolved
        """
        if "@" in identifier:
            participant = self.find_participant_by_email(identifier)
        else:
            participant = self.find_participant_by_name(identifier)

        if participant is None:
            raise ValueError(
                f"Unknown participant identifier: '{identifier}'. "
                f"Use a configured name or email address."
            )
        return participant

    def resolve_participants(self, identifiers: Sequence[str]) -> List[ParticipantConfig]:
        """
        Resolve multiple participant identifiers, ensuring uniqueness.

        Args:
            identifiers: Iterable of participant aliases or email addresses.

        Returns:
            List of unique participants in the order given.
        """
        if not identifiers:
            raise ValueError("No participants provided.")

        resolved: List[ParticipantConfig] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers:
            try:
                participant = self.resolve_participant(identifier)
            except ValueError:
                unknown_identifiers.append(identifier)
                continue

            if participant not in resolved:
                resolved.append(participant)

        if unknown_identifiers:
            missing = ", ".join(sorted(set(unknown_identifiers)))
            raise ValueError(
                f"Unknown participant identifier(s): {missing}. "
                "Ensure they exist in the configuration."
            )

        return resolved

    def availability_for(self, participants: Sequence[ParticipantConfig]) -> List[ParticipantAvailability]:
        """Build the domain rule sets for the given participants."""
        return [
            participant.to_availability(self.defaults, self.timezone)
            for participant in participants
        ]


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
