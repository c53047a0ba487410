"""Prompt templates for the AI features.

Templates:
1. PROFILE_EXTRACTION_PROMPT - CV / profile text to structured JSON
2. ARCHITECT_SYSTEM_PROMPT - Persona for the solution-architect assistant
3. build_analysis_prompt - Clarifying questions for a requirements brief
4. build_generation_prompt - Full architecture as JSON
5. build_follow_up_prompt - Next question in the conversation
"""

import json
from typing import Any, Dict, List

PROFILE_EXTRACTION_PROMPT = """You are an expert HR assistant. Extract structured candidate profile data from the provided text.
Return ONLY VALID JSON with this structure:
{
    "bio": "Professional summary...",
    "jobTitle": "Most relevant job title",
    "skills": [{ "name": "Skill", "category": "Category" }],
    "workExperience": [{ "company": "", "title": "", "startDate": "YYYY-MM-DD", "endDate": "YYYY-MM-DD" | null, "description": "" }],
    "education": [{ "school": "", "degree": "", "startDate": "YYYY-MM-DD", "endDate": "YYYY-MM-DD" }]
}
For dates, use YYYY-MM-DD format. Use null for 'Present' end dates.
Infer categories for skills (e.g. 'Technical', 'Soft Skills', 'Tools')."""

ARCHITECT_SYSTEM_PROMPT = """You are an expert software architect with deep knowledge of system design, architectural patterns, and best practices across various industries. Your role is to:

1. Ask insightful clarifying questions to understand the user's needs
2. Suggest appropriate architectural patterns and system components
3. Provide industry-specific best practices
4. Generate detailed, production-ready architecture recommendations
5. Consider scalability, security, maintainability, and cost

When generating architecture:
- Be specific about system components and their responsibilities
- Suggest appropriate technologies and integration patterns
- Include data layer considerations
- Address non-functional requirements (security, performance, etc.)
- Provide actionable best practices

Always output architecture in a structured, parseable format."""

_ARCHITECTURE_SCHEMA = """{
  "summary": "Brief overview of the architecture",
  "layers": [
    {
      "name": "Layer name (e.g., Frontend, API Gateway, Services, Data)",
      "description": "Purpose of this layer",
      "systems": ["System1", "System2"]
    }
  ],
  "systems": [
    {
      "name": "System name",
      "type": "Source System|Data Warehouse|Data Lake|Other",
      "description": "What this system does",
      "schema": "Schema name if applicable",
      "assets": [
        {
          "name": "Asset name (e.g., users_table, api_endpoint)",
          "type": "Table|API|File|Topic|Queue",
          "description": "Asset purpose"
        }
      ]
    }
  ],
  "integrations": [
    {
      "sourceSystemName": "Source system name",
      "targetSystemName": "Target system name",
      "technology": "REST API|GraphQL|Kafka|etc",
      "description": "Integration purpose"
    }
  ],
  "techStack": [
    {
      "category": "Frontend|Backend|Database|Infrastructure|etc",
      "technologies": ["Tech1", "Tech2"]
    }
  ],
  "bestPractices": [
    {
      "category": "Security|Scalability|Performance|Maintainability|etc",
      "title": "Practice title",
      "description": "Why and how to implement",
      "priority": "high|medium|low",
      "references": ["Optional reference links"]
    }
  ]
}"""


def _join(items: List[str]) -> str:
    return ", ".join(items or [])


def build_analysis_prompt(requirements: Dict[str, Any]) -> str:
    """Ask for an initial analysis and 3-5 clarifying questions."""
    return f"""Analyze these requirements and generate 3-5 clarifying questions to better understand the architecture needs:

Business Context: {requirements.get('businessContext', '')}
Industry: {requirements.get('industry', '')}
Project: {requirements.get('projectDescription', '')}
Functional Requirements: {_join(requirements.get('functionalRequirements'))}
Non-Functional Requirements: {_join(requirements.get('nonFunctionalRequirements'))}
Acceptance Criteria: {_join(requirements.get('acceptanceCriteria'))}
Technical Preferences: {requirements.get('technicalPreferences') or 'None specified'}

Provide:
1. Initial analysis of the requirements
2. 3-5 specific questions to clarify ambiguities or missing information

Format as JSON:
{{
  "analysis": "Your analysis here",
  "questions": ["Question 1", "Question 2", ...]
}}"""


def build_generation_prompt(requirements: Dict[str, Any], history: List[Dict[str, str]]) -> str:
    """Ask for the complete architecture in the JSON shape the importer reads."""
    transcript = "\n".join(f"{m.get('role', 'user')}: {m.get('content', '')}" for m in history or [])
    return f"""Based on all the information gathered, generate a complete system architecture.

REQUIREMENTS:
{json.dumps(requirements, indent=2)}

CONVERSATION HISTORY:
{transcript}

Generate a complete architecture with:
1. System components (specific services, databases, APIs)
2. Integration patterns between systems
3. Architectural layers (frontend, backend, data, etc.)
4. Technology stack recommendations
5. Best practices specific to this use case

Output as JSON with this exact structure:
{_ARCHITECTURE_SCHEMA}"""


def build_follow_up_prompt(context: str) -> str:
    return (
        f"{context}\n\n"
        "Based on the conversation so far, what's the most important question to ask "
        "next to finalize the architecture? Be specific and focused."
    )
