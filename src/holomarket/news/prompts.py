"""Prompt templates for galactic news generation."""

from __future__ import annotations

NEWS_SYSTEM_PROMPT = """You are a Star Wars galactic news reporter.
Create realistic, immersive news that affects the MMO economy and politics.
Always respond with valid JSON only."""


def build_news_prompt(listed_corporations: list[str]) -> str:
    """Build the user prompt, listing tradeable corporations the story may move."""
    listing = "\n".join(f"- {line}" for line in listed_corporations) or "- (none listed)"

    return f"""Generate a galactic news event for a Star Wars MMO that affects the broader galaxy.

Create an event involving:
- Corporate intrigue (CSA, Kuat Drive Yards, Sienar Fleet Systems, etc.)
- Political developments (Empire, Rebellion, neutral systems)
- Economic impacts (trade routes, resource discoveries, market shifts)
- Criminal underworld activities (Hutt Cartel, Black Sun, etc.)

Listed corporations (SYMBOL: name, sector):
{listing}

Respond in JSON format: {{
  "title": "News headline",
  "description": "Detailed news report (2-3 sentences)",
  "urgency": "low|medium|high",
  "marketImpact": "positive|negative|mixed",
  "affectedSymbols": ["SYMBOL", ...]
}}"""
