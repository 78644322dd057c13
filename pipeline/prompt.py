"""
Step 3: Build the classification prompt.

Articles are numbered [Article 1], [Article 2], ... so the model can cite
them by index. The article block is cut at a fixed character budget to stay
under token limits; the cut can land mid-article and later articles lose out.
"""

from config import MAX_INCIDENTS, PROMPT_CHAR_BUDGET, REGIONS, BORDER_REGIONS
from models import StepReport


def render_articles(articles, budget=PROMPT_CHAR_BUDGET):
    blocks = []
    for i, a in enumerate(articles, start=1):
        blocks.append("[Article {}]\nTitle: {}\nSource: {}\nPublished: {}\nSummary: {}\nURL: {}\n\n".format(
            i, a.title or "", a.source or "", a.published_at or "", a.summary or "", a.url))
    return "".join(blocks)[:budget]


def build(articles, regions=None, max_incidents=MAX_INCIDENTS, budget=PROMPT_CHAR_BUDGET,
          border_regions=None):
    """Render the full instruction string for the model."""
    regions = regions or REGIONS
    border_regions = border_regions if border_regions is not None else BORDER_REGIONS
    articles_text = render_articles(articles, budget)

    return """You are a security analyst tracking the India-Pakistan conflict.
Based ONLY on the news articles below, classify every Indian state and list the notable incidents.

STATES (use these exact names):
{regions}
Border states with Pakistan: {border}

DANGER LEVELS (use exactly one per state):
- "danger": active hostilities, attacks, shelling, or strikes reported in the state
- "moderate": heightened alert, security build-up, blackouts, or credible threats, but no reported attack
- "neutral": no current reports of conflict affecting the state

INCIDENTS:
- List at most {cap} notable incidents (attacks, shelling, drone or missile strikes, ceasefire violations)
- Every incident needs "city", "state" and "description"
- "sourceArticle" is the number of the article that reports it (1 for [Article 1], and so on)
- Do not invent incidents that no article reports

Return ONLY a single JSON object, no prose, matching this schema:
{{
  "states": [
    {{
      "name": "State Name",
      "dangerLevel": "danger|moderate|neutral",
      "description": "Brief explanation"
    }}
  ],
  "attacks": [
    {{
      "city": "City Name",
      "state": "State Name",
      "description": "What happened",
      "sourceArticle": 1
    }}
  ]
}}

ARTICLES ({count}):
{articles}""".format(
        regions="\n".join("- " + r for r in regions),
        border=", ".join(border_regions),
        cap=max_incidents,
        count=len(articles),
        articles=articles_text)


def run(articles, regions=None, max_incidents=MAX_INCIDENTS, budget=PROMPT_CHAR_BUDGET,
        border_regions=None):
    """Returns (prompt, report)."""
    print("\n>>> PROMPT: {} articles...".format(len(articles)))
    report = StepReport("prompt", items_in=len(articles), items_out=1)
    rendered = sum(len(render_articles([a], budget)) for a in articles)
    if rendered > budget:
        report.notes.append("articles truncated at {} chars".format(budget))
        print("    article text truncated ({} -> {} chars)".format(rendered, budget))
    prompt = build(articles, regions, max_incidents, budget, border_regions)
    print("    {} chars".format(len(prompt)))
    return prompt, report
