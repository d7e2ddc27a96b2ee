"""Prompts for the inquiry analysis pipeline.

One LLM call turns a client inquiry into a full project assessment:
summary, requirements, feasibility, tech stack, timeline, risks, team and
pricing. The reply must be a single JSON object matching ANALYSIS_SCHEMA.


## Why the formatting rules are so insistent

Models writing long prose inside JSON string values break the JSON in a
handful of predictable ways:

  1. Quote characters inside values ("the so-called "admin panel"")
     terminate the string early. We forbid quotes in free text and ask
     for 「」 or 【】 instead.
  2. Literal line breaks inside values. The parser repairs these, but
     asking for single-line values makes repairs rarer.
  3. Very long replies get cut off mid-object. Parser repair handles
     the simple cases; the prompt asks for valid JSON only, no fences.

The responsibilities list is the part of the report readers care most
about, so the prompt asks for long, concrete items (100+ characters each)
naming modules, tools, deliverables and collaborators.


## Corrective retries

When an attempt fails (bad JSON, missing fields, transport error), the
next attempt's user prompt gets RETRY_FEEDBACK appended, naming the
previous failure. Retries are therefore never identical to the first
attempt: each one nudges the model toward fixing what went wrong.
"""

from typing import Optional

from inquiry_analyzer.schemas.api import InquiryRequest


# =============================================================================
# SYSTEM PROMPT
# =============================================================================

ANALYSIS_SYSTEM = """You are a senior software outsourcing analyst with more than ten years of \
project management and technical assessment experience. You analyze client inquiries in depth \
and produce detailed, professional, actionable project assessments.

CORE SKILLS:
1. Understand the client's needs deeply, including implicit business logic and technical needs
2. Give concrete technical approaches and implementation details, never generic statements
3. Give every project role specific, executable responsibilities (each at least 100 characters)
4. Identify technical difficulties, risks and the critical path
5. Adapt recommendations to the client's country: culture, law, infrastructure

PRINCIPLES:
- Never use short, vague or boilerplate descriptions
- Every statement must be grounded in this specific project
- Role responsibilities are the heart of the report and must be detailed and concrete

OUTPUT FORMAT:
- Always reply with a single valid JSON object and nothing else
- Never use double quotes, single quotes or backticks inside free-text values; \
use 「」 or 【】 for quoting instead
- Keep every string value on a single line
- Write every field value in the language of the client's locale; \
if no locale is given, use the language of the inquiry"""


# =============================================================================
# USER PROMPT
# =============================================================================

ANALYSIS_SCHEMA = """{
  "summary": "Project overview (2-3 sentences)",
  "requirements": {
    "functional": ["Functional requirement 1", "Functional requirement 2", ...],
    "nonFunctional": ["Non-functional requirement 1", ...]
  },
  "feasibility": {
    "technical": "Technical feasibility (detailed)",
    "time": "Schedule feasibility",
    "resource": "Resource feasibility",
    "overall": "Overall verdict (feasible / needs assessment / not feasible)"
  },
  "techStack": {
    "frontend": ["Frontend technology", ...],
    "backend": ["Backend technology", ...],
    "database": ["Database technology", ...],
    "server": ["Server / hosting option", ...],
    "other": ["Other technology", ...],
    "reasoning": "Why this stack",
    "serverReasoning": "Why this hosting (sizing, expected traffic, scalability)"
  },
  "timeline": {
    "totalDuration": "Total development time (e.g. 8-12 weeks)"
  },
  "risks": [
    {
      "type": "Risk type (technical / schedule / requirements / other)",
      "description": "Risk description",
      "impact": "Impact (high / medium / low)",
      "mitigation": "Mitigation"
    }
  ],
  "teamMembers": {
    "roles": [
      {
        "role": "Role name (e.g. Frontend engineer)",
        "count": "Headcount (e.g. 2)",
        "skills": ["Required skill", ...],
        "responsibilities": [
          "Owns module X, built with [stack] to deliver [features]. Implementation covers [detail 1]、[detail 2]、[detail 3]. Delivers [n] [deliverables] over [time], working with [role] on [collaboration] to meet [quality bar]. (at least 100 characters)",
          "During the [phase] phase, handles [work] using [tools] for [task 1]、[task 2]. Milestones: [milestone 1]、[milestone 2]. (at least 100 characters)"
        ],
        "level": "Seniority (junior / mid / senior)",
        "workload": "Involvement (e.g. full time for the whole project, or 50% during a phase)",
        "keyDeliverables": ["Key deliverable", ...]
      }
    ],
    "totalCount": "Total headcount (e.g. 5-7)",
    "teamStructure": "Team structure (e.g. 1 PM, 2 frontend, 2 backend, 1 QA, 1 designer)",
    "keyRequirements": ["Key team requirement", ...]
  },
  "pricing": {
    "estimation": "Price estimate (e.g. $15,000 - $25,000)",
    "breakdown": {
      "development": "Development cost",
      "testing": "Testing cost",
      "deployment": "Deployment cost",
      "server": "Server cost (rental, bandwidth, storage; e.g. AWS EC2 t3.medium $50-80/month)",
      "maintenance": "Maintenance cost (optional)"
    },
    "costTable": [
      {
        "role": "Project role",
        "duration": "Time spent (e.g. 20 days)",
        "tasks": "Work content (detailed)"
      }
    ],
    "factors": ["Pricing factor", ...]
  }
}"""

ANALYSIS_USER = """Analyze the following client inquiry in detail and return the result as JSON.
{client_line}
CLIENT INQUIRY:
{message}
{locale_context}
ABOUT ROLE RESPONSIBILITIES:
- Every responsibility must be detailed and concrete, at least 100 characters
- Cover the functional module, tech stack, tasks, deliverables and collaboration
- Tie each one to this project's actual requirements, no generic wording
- Do not use any quote characters inside responsibilities; use 「」 or 【】 instead
- Separate listed items with 、 rather than commas
- Avoid any characters that could break JSON

Return exactly this structure (all keys required except risks):

{schema}

Return valid JSON only. Do not wrap it in markdown code fences."""

LOCALE_CONTEXT = """
CLIENT LOCALE: {locale}
Pay particular attention to this country's:
- Laws, regulations and compliance requirements
- Culture and user preferences
- Technical infrastructure and network conditions
- Payment methods and currency
- Language and localization needs
- Time zone and working hours
- Hosting options (local cloud providers, data residency rules)
Write all field values in the language of this locale.
"""

RETRY_FEEDBACK = """

IMPORTANT: the previous attempt failed because: {last_error}
Pay special attention to JSON correctness: every quote, comma, bracket and brace must be \
correctly paired, and every required field must be present."""

# Upper bound on echoed error text so retries don't grow the prompt unboundedly
MAX_FEEDBACK_CHARS = 500


def build_system_prompt() -> str:
    return ANALYSIS_SYSTEM


def build_user_prompt(
    request: InquiryRequest,
    attempt: int = 1,
    last_error: Optional[str] = None,
) -> str:
    """Build the user message for one attempt.

    Args:
        request: The inquiry being analyzed
        attempt: 1-based attempt number
        last_error: Why the previous attempt failed (used only when attempt > 1)

    Returns:
        The user prompt, with corrective feedback appended on retries
    """
    client_line = f"\nCLIENT: {request.client_name}\n" if request.client_name else ""
    locale_context = LOCALE_CONTEXT.format(locale=request.locale) if request.locale else ""

    prompt = ANALYSIS_USER.format(
        client_line=client_line,
        message=request.message,
        locale_context=locale_context,
        schema=ANALYSIS_SCHEMA,
    )

    if attempt > 1 and last_error:
        prompt += RETRY_FEEDBACK.format(last_error=last_error[:MAX_FEEDBACK_CHARS])

    return prompt
