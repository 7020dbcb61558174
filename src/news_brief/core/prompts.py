"""Prompt templates for the headline rewrite call.

One request covers the whole batch; the model must answer with a JSON
array whose elements line up with the numbered articles.
"""

from typing import List

from ..models.news import Article


REWRITE_SYSTEM_PROMPT = """You are a professional financial news translator and market analyst.

You translate business headlines into {language} and add a short
investment reading for each story. You never invent facts that are not
in the article text.
"""


REWRITE_USER_PROMPT = """Translate the following {count} business news articles into {language}
and give an investment commentary for each one.

{articles}

Respond with a JSON array only, with no Markdown fences and no other text.
The array MUST contain exactly {count} objects, in the same order as the
articles above:

[
  {{
    "title": "headline in {language}",
    "summary": "2-3 sentence summary in {language}",
    "commentary": "market impact commentary in {language}, starting with an emoji, 50-80 words",
    "category": "short category label in {language} (monetary policy, economic data, corporate news, geopolitics, ...)"
  }}
]
"""


def format_articles_for_prompt(articles: List[Article]) -> str:
    parts = []
    for i, article in enumerate(articles, 1):
        parts.append(
            f"Article {i}:\n"
            f"Title: {article.title}\n"
            f"Content: {article.description}\n"
            f"Source: {article.source}"
        )
    return "\n\n---\n\n".join(parts)


def build_rewrite_messages(articles: List[Article], language: str) -> List[dict]:
    return [
        {"role": "system", "content": REWRITE_SYSTEM_PROMPT.format(language=language)},
        {
            "role": "user",
            "content": REWRITE_USER_PROMPT.format(
                count=len(articles),
                language=language,
                articles=format_articles_for_prompt(articles),
            ),
        },
    ]
