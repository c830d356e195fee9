"""
Console Harness for ConversationController

Type incident details, watch the form, tags and classification update.
Commands:
    /edit <section>.<field> <value>   direct form edit
    /classify                         classify now
    /form                             show the form
"""

import json
import logging
import sys

from dotenv import load_dotenv

from fir_assistant.config import ProviderConfig
from fir_assistant.core.conversation_controller import ConversationController
from fir_assistant.results import IllegalCommand

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def print_separator(char="=", length=60):
    print(char * length)


def print_debug_info(turn_result):
    """Print extraction and form-change details from a TurnResult"""
    print("\n" + "-" * 60)
    print("DEBUG INFO:")
    print("-" * 60)

    debug = turn_result.debug
    print(f"Extraction outcome: {debug.get('extraction_outcome', 'N/A')}")
    print(f"Tags this turn: {turn_result.extracted.to_dict()}")

    metadata = debug.get('parse_metadata', {})
    if metadata.get('validation_warnings'):
        print(f"Validation warnings: {metadata['validation_warnings']}")
    if metadata.get('error_message'):
        print(f"Provider error: {metadata['error_message']}")

    for change in debug.get('form_changes', []):
        print(f"  {change['section']}.{change['field']} = {change['value']!r} ({change['source']})")

    if turn_result.classification is not None:
        c = turn_result.classification
        print(f"Sections: {c.section_labels} [{c.severity_tier.value}]")

    if 'error' in debug:
        print(f"ERROR: {debug['error']}")

    print(f"Health: {turn_result.provider_health.status.value}")
    print("-" * 60)


def handle_command(controller, line):
    """Console slash-commands. Returns True if handled."""
    if line == '/form':
        print(json.dumps(controller.form_state.to_dict(), indent=2))
        return True

    if line == '/classify':
        classification = controller.reclassify()
        print(json.dumps(classification.to_dict(), indent=2))
        return True

    if line.startswith('/edit '):
        parts = line.split(' ', 2)
        if len(parts) < 3 or '.' not in parts[1]:
            print("Usage: /edit <section>.<field> <value>")
            return True
        section, field = parts[1].split('.', 1)
        result = controller.edit_field(section, field, parts[2])
        if isinstance(result, IllegalCommand):
            print(f"Edit rejected: {result.reason}")
        else:
            print(f"Updated {section}.{field}")
        return True

    return False


def main():
    """Run console loop"""
    load_dotenv()

    print_separator()
    print("FIR ASSISTANT - CONSOLE")
    print_separator()

    config = ProviderConfig.from_env()
    controller = ConversationController(config=config)

    if controller.config_errors:
        print("\nProvider configuration problems (keyword fallback will be used):")
        for error in controller.config_errors:
            print(f"  - {error}")

    print(f"\nAssistant: {controller.history[-1].text}\n")
    print("Type 'quit', 'exit', or 'stop' to end\n")

    while True:
        try:
            user_input = input("> ").strip()

            if user_input.lower() in ['quit', 'exit', 'stop']:
                break

            if not user_input:
                print("Please enter a response.\n")
                continue

            if handle_command(controller, user_input):
                continue

            turn_result = controller.submit_utterance(user_input)
            print(f"\nAssistant: {turn_result.reply}\n")
            print_debug_info(turn_result)

        except (KeyboardInterrupt, EOFError):
            print("\n\nSession interrupted by user")
            break

    print_separator()
    print("Final form:")
    print(json.dumps(controller.form_state.to_dict(), indent=2))
    print_separator()
    return 0


if __name__ == '__main__':
    sys.exit(main())
