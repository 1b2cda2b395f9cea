SYSTEM_PROMPT = "You are an email classification expert. Always respond with valid JSON."

PROMPT = """
Classify the following email into one of these categories:
- important: Personal or work-related emails requiring immediate attention
- promotional: Sales, discounts, marketing campaigns
- social: Social networks, friends, family
- marketing: Marketing newsletters, notifications
- spam: Unwanted or unsolicited emails
- general: If none of the above match

Email Details:
From: {sender}
Subject: {subject}
Content: {content}

Respond with JSON only, containing exactly the keys "category", "confidence" and "reasoning":
{{
  "category": "chosen_category",
  "confidence": 0.95,
  "reasoning": "brief explanation"
}}
"""


def build_messages(*, sender: str, subject: str, content: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": PROMPT.format(sender=sender, subject=subject, content=content),
        },
    ]
