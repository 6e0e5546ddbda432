import os

from openai import OpenAI

from text_helpers import clean_ai_response

PLAN_SYSTEM_PROMPT = (
    "You are an expert in planning and project management. Break the user's plan "
    "into small, concrete, measurable actions in a sensible order. Do not use emoji, "
    "bold/italic markers or tildes. Answer with three sections: 'Action plan:' as a "
    "numbered list, 'Suggested schedule:' and 'Watch out for:' as dash lists."
)


def get_openai_client() -> OpenAI:
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is not set")
    return OpenAI(api_key=api_key)


def call_chat_text(
    system_prompt,
    user_content,
    *,
    max_tokens=500,
    temperature=0.3,
    model=None,
    logger=None,
):
    """Call OpenAI chat completion and return response content or None."""
    try:
        client = get_openai_client()
        response = client.chat.completions.create(
            model=model or os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content
    except Exception as exc:
        if logger:
            logger.warning("OpenAI API error: %s", exc)
        return None


def build_plan_request(title, description=None, due_date=None, priority="medium"):
    lines = [f"Plan: {title}"]
    if description:
        lines.append(f"Details: {description}")
    if due_date:
        lines.append(f"Due: {due_date}")
    lines.append(f"Priority: {priority}")
    return "\n".join(lines)


def suggest_action_plan(title, *, description=None, due_date=None, priority="medium", model=None, logger=None):
    """Ask the model to split a plan into actions; returns cleaned text or None."""
    raw = call_chat_text(
        PLAN_SYSTEM_PROMPT,
        build_plan_request(title, description, due_date, priority),
        max_tokens=1000,
        temperature=0.7,
        model=model,
        logger=logger,
    )
    if not raw:
        return None
    return clean_ai_response(raw) or None
