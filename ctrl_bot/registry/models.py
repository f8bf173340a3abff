"""Registry data model.

The registry is the single persisted aggregate: projects keyed by name,
Slack user profiles keyed by Slack user ID, and the global list of
managers who are asked to review every project's pull requests.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CONFIGURED_PROJECT = "amcwb/ctrl"


class Project(BaseModel):
    """A tracked project bound to one Slack channel."""

    model_config = ConfigDict(extra="ignore")

    slack_channel: str
    github_repo: Optional[str] = None
    project_owners: List[str] = Field(default_factory=list)
    jira_project: Optional[str] = None

    @field_validator("project_owners")
    @classmethod
    def dedupe_owners(cls, v: List[str]) -> List[str]:
        """Owners are an ordered set; keep the first occurrence."""
        return list(dict.fromkeys(v))


class Profile(BaseModel):
    """Links a Slack user to a GitHub username."""

    model_config = ConfigDict(extra="ignore")

    github_username: str


class Registry(BaseModel):
    """All projects, profiles and managers for this deployment."""

    model_config = ConfigDict(extra="ignore")

    projects: Dict[str, Project] = Field(default_factory=dict)
    managers: List[str] = Field(default_factory=list)
    configured_project: str = DEFAULT_CONFIGURED_PROJECT
    profiles: Dict[str, Profile] = Field(default_factory=dict)
