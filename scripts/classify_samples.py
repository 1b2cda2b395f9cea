"""
Classify a handful of built-in sample emails against the configured endpoint.

Usage:
    INBOX_CLASSIFIER_OPENAI_API_KEY=sk-... python scripts/classify_samples.py
    python scripts/classify_samples.py --base-url https://openrouter.ai/api/v1 \
        --model mistralai/mixtral-8x7b-instruct
"""

import argparse
import json
import sys
import time
from dataclasses import replace

import openai

from inbox_classifier.config.logging import configure_logging
from inbox_classifier.config.settings import load_settings
from inbox_classifier.errors import InferenceError
from inbox_classifier.inference.client import InferenceClient
from inbox_classifier.models import Message

SAMPLE_EMAILS = [
    (
        "important work",
        Message(
            id="sample-important",
            sender="boss@company.com",
            subject="Urgent: Project Deadline Update",
            snippet="",
            body=(
                "Team, we need to move up the deadline for the client presentation to next "
                "Tuesday. Please update your schedules accordingly."
            ),
            date="",
        ),
    ),
    (
        "promotional",
        Message(
            id="sample-promotional",
            sender="marketing@store.com",
            subject="Flash Sale! 24 Hours Only",
            snippet="",
            body=(
                "Don't miss out! Get 50% off all items in our winter collection. "
                "Use code WINTER50 at checkout."
            ),
            date="",
        ),
    ),
    (
        "social",
        Message(
            id="sample-social",
            sender="jane.smith@gmail.com",
            subject="Birthday party this weekend!",
            snippet="",
            body=(
                "Hey! Hope you can make it to my birthday celebration this Saturday at 7pm. "
                "Let me know if you're coming!"
            ),
            date="",
        ),
    ),
    (
        "marketing",
        Message(
            id="sample-marketing",
            sender="newsletter@techblog.com",
            subject="Weekly Tech Digest: AI Updates",
            snippet="",
            body=(
                "This week in tech: Latest developments in AI, New programming languages "
                "on the rise, Top 10 developer tools for 2025"
            ),
            date="",
        ),
    ),
    (
        "spam",
        Message(
            id="sample-spam",
            sender="prince@foreign.example",
            subject="URGENT: You have won $1,000,000!!!",
            snippet="",
            body=(
                "Dear Sir/Madam, I am contacting you regarding your LOTTERY WINNING of "
                "$1,000,000. Please send your details to claim..."
            ),
            date="",
        ),
    ),
]

# Pause between samples to stay clear of free-tier rate limits.
SAMPLE_DELAY = 1.0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--base-url", help="OpenAI-compatible endpoint, e.g. OpenRouter")
    parser.add_argument("--model", help="Model name to request")
    args = parser.parse_args()

    settings = load_settings()
    if args.base_url:
        settings = replace(settings, openai_base_url=args.base_url)
    if args.model:
        settings = replace(settings, model=args.model)

    if not settings.openai_api_key:
        print("ERROR: INBOX_CLASSIFIER_OPENAI_API_KEY is not set.", file=sys.stderr)
        print("Set it (or add it to .env) and re-run.", file=sys.stderr)
        return 1

    configure_logging(settings.log_level, json_output=False)
    client = InferenceClient(settings.openai_api_key, settings=settings)

    print("Testing email classification with multiple email types...\n")
    failures = 0
    for index, (kind, email) in enumerate(SAMPLE_EMAILS):
        print(f"=== Testing {kind} email ===")
        print(f"From:    {email.sender}")
        print(f"Subject: {email.subject}")
        try:
            result = client.classify(email)
        except (InferenceError, openai.APIConnectionError) as exc:
            failures += 1
            print(f"Classification failed: {type(exc).__name__}: {exc}\n")
        else:
            print("Classification result:")
            print(json.dumps(result.to_dict(), indent=2))
            print()

        if index < len(SAMPLE_EMAILS) - 1:
            time.sleep(SAMPLE_DELAY)

    return 2 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
