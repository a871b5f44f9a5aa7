"""Contracts for prompt analysis, business concept and database schema."""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from enum import Enum


class PromptContext(BaseModel):
    """What the prompt optimizer knows about the project before it starts."""
    existing_files: List[str] = Field(default_factory=list)
    design_system: Optional[Dict] = Field(None, description="Current design system as JSON, if any")
    color_scheme: Optional[str] = Field(None)
    reference_url: Optional[str] = Field(None)


class PromptAnalysis(BaseModel):
    """Output of the prompt optimizer."""
    intent: str = Field(..., description="What the user wants to achieve")
    missing_details: List[str] = Field(default_factory=list, alias="missingDetails")
    design_requirements: List[str] = Field(default_factory=list, alias="designRequirements")
    technical_requirements: List[str] = Field(default_factory=list, alias="technicalRequirements")
    optimized_prompt: str = Field(..., alias="optimizedPrompt")

    model_config = {"populate_by_name": True}


class DesignRuleCheck(BaseModel):
    """Result of checking a prompt against the house design rules."""
    valid: bool = Field(default=True)
    violations: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class ReferenceAnalysis(BaseModel):
    """Design traits extracted from a reference website."""
    colors: List[str] = Field(default_factory=list)
    design_style: str = Field(default="")
    layout_structure: str = Field(default="")
    typography: List[str] = Field(default_factory=list)
    components: List[str] = Field(default_factory=list)
    patterns: List[str] = Field(default_factory=list)


class BusinessConcept(BaseModel):
    """Business concept parsed from the architect's markdown. Never partially empty."""
    summary: str = Field(...)
    target_audience: str = Field(...)
    features: List[str] = Field(..., min_length=1)
    tech_stack: List[str] = Field(..., min_length=1)
    db_schema: Optional[str] = Field(None, description="Raw schema section from the concept, if present")
    marketing_strategy: Optional[str] = Field(None)


class Cardinality(str, Enum):
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"


class Column(BaseModel):
    name: str = Field(...)
    type: str = Field(..., description="uuid | text | integer | boolean | timestamp | jsonb")
    description: str = Field(default="")
    constraints: List[str] = Field(default_factory=list)


class Relationship(BaseModel):
    table: str = Field(...)
    type: Cardinality = Field(default=Cardinality.ONE_TO_MANY)


class Table(BaseModel):
    name: str = Field(...)
    description: str = Field(default="")
    columns: List[Column] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)


class DatabaseSchema(BaseModel):
    """Tables plus the SQL migrations that create them."""
    tables: List[Table] = Field(default_factory=list)
    migrations: List[str] = Field(default_factory=list)
