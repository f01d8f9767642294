"""Prompt templates for transcript analysis."""

from fitscore.models import Criteria

ANALYSIS_PROMPT = """You are an expert system analyzing a sales meeting transcript for a field service management software company.

CRITICAL INSTRUCTIONS:
1. Extract every piece of information from the transcript, even if limited
2. Make reasonable inferences based on context
3. Return ONLY valid JSON without any other text
4. Fill all fields with appropriate values

{criteria}

HISTORICAL CUSTOMERS FOR REFERENCE:
{historical}

Analyze this transcript and extract all relevant information:

\"\"\"
{transcript}
\"\"\"

Return a JSON object with this structure:

{{
  "customerName": "Company name, or 'Prospective Customer' if not found",
  "industry": "Industry, stated or inferred",
  "userCount": {{
    "total": 0,
    "backOffice": 0,
    "field": 0
  }},
  "currentState": {{
    "currentSystems": [{{"name": "System name", "usage": "What they use it for", "painPoints": ["Specific issues"]}}],
    "manualProcesses": ["Manual tasks mentioned"]
  }},
  "services": {{
    "types": ["Services mentioned or implied"],
    "details": {{"Service Type": "Details about this service"}}
  }},
  "requirements": {{
    "keyFeatures": ["Features the customer needs, as short phrases"],
    "integrations": [{{"system": "System name", "type": "CRM/Accounting/etc", "priority": "Critical/Important/Nice-to-have"}}],
    "checklists": {{"needed": false, "details": ["Checklists mentioned"]}},
    "communications": {{"customerNotifications": {{"required": false, "methods": ["SMS", "Email"]}}}}
  }},
  "timeline": {{"desiredGoLive": "Timeline or 'ASAP'", "urgency": "High/Medium/Low"}},
  "budget": {{"mentioned": false, "range": "Range if mentioned"}},
  "summary": {{
    "overview": "2-3 sentence summary of the prospect",
    "keyRequirements": ["Top 5 most important requirements"],
    "mainPainPoints": ["Primary problems they want to solve"]
  }},
  "strengths": [{{"title": "Strong alignment area", "description": "Why this is a strength"}}],
  "challenges": [{{"title": "Potential challenge", "description": "Why it is challenging", "severity": "Critical/Major/Minor"}}],
  "recommendations": {{
    "implementationApproach": {{"strategy": "Recommended approach", "phases": [{{"phase": 1, "name": "Phase name", "duration": "2-4 weeks"}}]}}
  }},
  "fitScore": 0
}}

fitScore is your 0-100 estimate of how well this prospect fits the platform criteria above."""


def format_criteria(criteria: Criteria) -> str:
    """Render the criteria snapshot as a prompt section."""
    def joined(items: list[str]) -> str:
        return ", ".join(items) or "None configured"

    return (
        "## PLATFORM CRITERIA\n\n"
        f"SUPPORTED INDUSTRIES: {joined(criteria.industries.whitelist)}\n"
        f"UNSUPPORTED INDUSTRIES: {joined(criteria.industries.blacklist)}\n"
        f"PLATFORM STRENGTHS: {joined(criteria.requirements.strengths)}\n"
        f"PLATFORM LIMITATIONS: {joined(criteria.requirements.weaknesses)}\n"
        f"UNSUPPORTED FEATURES: {joined(criteria.requirements.unsupported)}"
    )


def build_analysis_prompt(transcript: str, criteria_block: str, historical_block: str) -> str:
    return ANALYSIS_PROMPT.format(
        criteria=criteria_block,
        historical=historical_block,
        transcript=transcript.strip(),
    )
