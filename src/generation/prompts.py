"""Prompts for brief building and article generation."""

from __future__ import annotations

from seoforge.scoring.models import ContentBrief

DIFFERENTIATORS_PROMPT = (
    'You are a content strategist. For the topic "{topic}" with the angle "{angle}", '
    "generate 5 unique differentiators that would make this article stand out from "
    "typical articles on this topic. These should be specific and actionable.\n\n"
    "Audience: {audience}\n"
    "Keyword: {keyword}\n"
    "Intent: {intent}\n\n"
    "Return ONLY a JSON array of 5 strings, no explanation:\n"
    '["differentiator 1", "differentiator 2", "differentiator 3", '
    '"differentiator 4", "differentiator 5"]'
)

DATA_POINTS_PROMPT = (
    'For an article about "{topic}" targeting "{keyword}", provide 5 specific, '
    "verifiable data points or statistics. Each should be recent and cite-able.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '[{{"fact": "statistic here", "source": "source name", "verified": false}}]'
)

ALTERNATIVE_DATA_POINTS_PROMPT = (
    'Provide 5 DIFFERENT and UNIQUE data points about "{topic}" that are:\n'
    "- Not commonly cited\n"
    "- From recent research\n"
    "- Verifiable with sources\n"
    "- Specific numbers or percentages\n\n"
    'Return ONLY valid JSON: [{{"fact": "...", "source": "...", "verified": false}}]'
)

INSIGHT_PROMPT = (
    'What is ONE unique insight about "{topic}" that most articles miss? '
    "Be specific and insightful in 2-3 sentences. Just give the insight, no other text."
)

ARTICLE_SYSTEM_PROMPT = (
    "You are an expert content writer specializing in {topic}.\n"
    "You write for {audience}. Your content is:\n"
    "- Genuinely valuable and actionable\n"
    "- Based on real data and expert insights\n"
    "- Unique in perspective and approach\n"
    "- Optimized for both humans and search engines\n"
    "- Structured for AI Overviews and featured snippets\n\n"
    "CRITICAL RULES:\n"
    "1. NEVER use generic filler content\n"
    "2. EVERY paragraph must add unique value\n"
    "3. Include specific examples, not vague statements\n"
    "4. Use the data points provided - don't make up statistics\n"
    "5. Write from the specific angle: {angle}\n"
    "6. First paragraph must directly answer the search intent\n"
    "7. Include the unique insight naturally in the content"
)

_ARTICLE_OUTPUT_INSTRUCTION = (
    "Return ONLY valid JSON with this structure (no markdown code blocks, just raw JSON):\n"
    "{\n"
    '  "title": "SEO-optimized title under 60 chars",\n'
    '  "metaDescription": "Meta description under 155 chars",\n'
    '  "slug": "url-friendly-slug",\n'
    '  "content": "Full markdown content here",\n'
    '  "faqItems": [{"question": "Q1", "answer": "A1"}]\n'
    "}"
)


def build_article_prompt(brief: ContentBrief, template_id: str | None = None) -> str:
    """User prompt embedding every brief field the article must honor."""
    differentiators = "\n".join(f"{i}. {d}" for i, d in enumerate(brief.differentiators, 1))
    data_points = "\n".join(
        f"{i}. {dp.fact} (Source: {dp.source})" for i, dp in enumerate(brief.data_points, 1)
    )

    lines = [
        "Write a comprehensive article for:",
        "",
        f"TOPIC: {brief.topic}",
        f"TARGET KEYWORD: {brief.target_keyword}",
        f"SEARCH INTENT: {brief.search_intent}",
        f"CONTENT ANGLE: {brief.content_angle}",
        f"AUDIENCE: {brief.audience}",
    ]
    if template_id:
        lines.append(f"STRUCTURAL TEMPLATE: {template_id}")
    lines += [
        "",
        "DIFFERENTIATORS TO INCORPORATE:",
        differentiators,
        "",
        "DATA POINTS TO INCLUDE (USE THESE EXACT FACTS):",
        data_points,
        "",
        "UNIQUE INSIGHT TO WEAVE IN:",
        brief.unique_insight,
        "",
        "REQUIREMENTS:",
        "- Minimum 2000 words",
        "- Use H2 (##) and H3 (###) headers for structure",
        "- Include a FAQ section with 5 questions at the end",
        "- First paragraph must answer the search query directly",
        "- Include actionable takeaways",
        "- End with a clear call to action",
        "",
        _ARTICLE_OUTPUT_INSTRUCTION,
    ]
    return "\n".join(lines)


def build_system_prompt(brief: ContentBrief) -> str:
    return ARTICLE_SYSTEM_PROMPT.format(
        topic=brief.topic,
        audience=brief.audience,
        angle=brief.content_angle,
    )
