"""Architect agent: business concept, database schema and marketing strategy."""

import logging
from typing import List

from contracts import (
    BusinessConcept,
    Complexity,
    DatabaseSchema,
    Table,
    TaskType,
)
from parsing import extract_markdown_section, parse_json_from_text, section_items

from .base_agent import BaseAgent

logger = logging.getLogger(__name__)


DEFAULT_SUMMARY = "Complete app development with a modern tech stack"
DEFAULT_AUDIENCE = "End users"
DEFAULT_FEATURES = ["User Authentication", "Dashboard", "Data Management"]
DEFAULT_TECH_STACK = ["React 18", "TypeScript", "TailwindCSS", "Supabase"]
MARKETING_PLACEHOLDER = "# Marketing Strategy\n\nMarketing strategy pending..."

FALLBACK_SCHEMA = {
    "tables": [
        {
            "name": "users",
            "description": "Application users",
            "columns": [
                {"name": "id", "type": "uuid", "description": "Primary key",
                 "constraints": ["PRIMARY KEY", "DEFAULT uuid_generate_v4()"]},
                {"name": "email", "type": "text", "description": "Email address",
                 "constraints": ["NOT NULL", "UNIQUE"]},
                {"name": "created_at", "type": "timestamp", "description": "Creation time",
                 "constraints": ["NOT NULL", "DEFAULT now()"]},
            ],
        }
    ],
    "migrations": [
        'CREATE EXTENSION IF NOT EXISTS "uuid-ossp";',
        "CREATE TABLE users (...);",
        "ALTER TABLE users ENABLE ROW LEVEL SECURITY;",
    ],
}


def fallback_schema() -> DatabaseSchema:
    return DatabaseSchema.model_validate(FALLBACK_SCHEMA)


def parse_concept(markdown: str) -> BusinessConcept:
    """Build a concept from '##' sections; every missing section gets its default."""
    summary = extract_markdown_section(markdown, r"Business\s*Summary") or DEFAULT_SUMMARY
    audience = extract_markdown_section(markdown, r"Target\s*Audience") or DEFAULT_AUDIENCE
    features = section_items(extract_markdown_section(markdown, r"Features?")) or list(DEFAULT_FEATURES)
    tech_stack = section_items(extract_markdown_section(markdown, r"Tech\s*Stack")) or list(DEFAULT_TECH_STACK)

    return BusinessConcept(
        summary=summary,
        target_audience=audience,
        features=features,
        tech_stack=tech_stack,
        db_schema=extract_markdown_section(markdown, r"Database\s*Schema"),
        marketing_strategy=extract_markdown_section(markdown, r"Marketing\s*Strategy"),
    )


def render_concept_markdown(concept: BusinessConcept) -> str:
    """Markdown written to brain/concept.md."""
    lines = [
        "# Business Concept",
        "",
        "## Business Summary",
        concept.summary,
        "",
        "## Target Audience",
        concept.target_audience,
        "",
        "## Features",
        *[f"- {f}" for f in concept.features],
        "",
        "## Tech Stack",
        *[f"- {t}" for t in concept.tech_stack],
    ]
    if concept.db_schema:
        lines += ["", "## Database Schema", concept.db_schema]
    if concept.marketing_strategy:
        lines += ["", "## Marketing Strategy", concept.marketing_strategy]
    return "\n".join(lines) + "\n"


def render_schema_markdown(schema: DatabaseSchema) -> str:
    """Markdown written to brain/database.md."""
    lines = ["# Database Schema", ""]
    for table in schema.tables:
        lines.append(f"## {table.name}")
        if table.description:
            lines.append(table.description)
        lines += ["", "| Column | Type | Constraints | Description |", "|---|---|---|---|"]
        for col in table.columns:
            lines.append(f"| {col.name} | {col.type} | {', '.join(col.constraints)} | {col.description} |")
        if table.relationships:
            lines.append("")
            lines += [f"- {rel.type.value} → {rel.table}" for rel in table.relationships]
        lines.append("")
    if schema.migrations:
        lines += ["## Migrations", "", "```sql", *schema.migrations, "```"]
    return "\n".join(lines) + "\n"


class ArchitectAgent(BaseAgent):
    """Chief-product-officer style planner."""

    ROLE = "architect"
    SYSTEM_INSTRUCTION = (
        "You are an experienced CPO and product architect. "
        "Create structured, professional business concepts."
    )

    async def create_concept(self, optimized_prompt: str) -> BusinessConcept:
        """Create a business concept from the optimized prompt.

        Raises:
            NoAvailableModelError: no reasoning model is configured
        """
        prompt = f"""You are the Chief Product Officer. Create a complete business concept based on:

{optimized_prompt}

Write a detailed concept with these sections:
## Business Summary
## Target Audience
## Features (bullet list: MVP + future)
## Tech Stack (bullet list)
## Database Schema (Supabase tables as SQL)
## Marketing Strategy

Format: Markdown with clear '##' headings.

IMPORTANT:
- Use Supabase for the database
- Use Row Level Security (RLS) for tenant isolation
- Design: dark mode, Venlo style
- GDPR compliant"""

        response = await self._complete(TaskType.REASONING, Complexity.HIGH, prompt, purpose="concept creation")
        return parse_concept(response.content)

    async def create_schema(self, concept: BusinessConcept) -> DatabaseSchema:
        """Create the database schema for a concept.

        Raises:
            NoAvailableModelError: no coding model is configured
        """
        prompt = f"""Create a detailed Supabase database schema for:

Business concept: {concept.summary}
Features: {', '.join(concept.features)}

Requirements:
- Supabase PostgreSQL
- Row Level Security (RLS) for tenant isolation; every table needs RLS policies
- Foreign keys for relationships
- Timestamps (created_at, updated_at) on every table
- UUID primary keys

Respond as JSON:
{{
  "tables": [
    {{
      "name": "table_name",
      "description": "...",
      "columns": [
        {{
          "name": "column_name",
          "type": "uuid | text | integer | boolean | timestamp | jsonb",
          "description": "...",
          "constraints": ["PRIMARY KEY", "NOT NULL", "DEFAULT uuid_generate_v4()"]
        }}
      ],
      "relationships": [{{"table": "related_table", "type": "one-to-many"}}]
    }}
  ],
  "migrations": ["-- SQL migration statements"]
}}"""

        response = await self._complete(
            TaskType.CODING,
            Complexity.HIGH,
            prompt,
            "You are a database architect. Create professional, secure Supabase schemas with RLS.",
            purpose="schema creation",
        )

        data = parse_json_from_text(response.content, ["tables"], FALLBACK_SCHEMA)
        tables = data.get("tables")
        migrations = data.get("migrations")
        if not isinstance(tables, list) or not isinstance(migrations, list):
            logger.warning("Schema response lacks tables or migrations, using fallback schema")
            return fallback_schema()

        parsed_tables: List[Table] = []
        for raw in tables:
            try:
                parsed_tables.append(Table.model_validate(raw))
            except ValueError as e:
                logger.warning("Skipping malformed table definition: %s", e)
        if not parsed_tables:
            return fallback_schema()

        return DatabaseSchema(tables=parsed_tables, migrations=[str(m) for m in migrations])

    async def create_marketing(self, concept: BusinessConcept) -> str:
        """Marketing strategy as markdown; a placeholder when no creative model is configured."""
        config = self._select(TaskType.CREATIVE, Complexity.MEDIUM)
        if config is None:
            return MARKETING_PLACEHOLDER

        prompt = f"""Create a marketing strategy for:

Business concept: {concept.summary}
Target audience: {concept.target_audience}
Features: {', '.join(concept.features)}

Cover:
1. Target audience analysis (detailed)
2. Marketing channels (email, blog, social media)
3. Content strategy
4. Launch plan

Format: Markdown"""

        response = await self._call(
            config,
            prompt,
            "You are a marketing expert. Create professional marketing strategies.",
        )
        return response.content
