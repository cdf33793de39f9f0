import asyncio
import argparse
import uuid
import logging

from supportwise.agents import ResponseOrchestrationAgent
from supportwise.config import Settings

# Setup basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

PROMPT = "\nYou (or type 'exit' to quit, 'reset' to start over): "


def print_result(result: dict):
    print(f"\nBot: {result['response']}")
    if result.get("suggestions"):
        print("Suggestions:")
        for i, suggestion in enumerate(result["suggestions"]):
            print(f"  {i+1}. {suggestion}")
    debug = result.get("debug") or {}
    print(f"[path={debug.get('path')} context={debug.get('context_found')} max_score={debug.get('max_score')}]")


async def main_workflow(business_id: str = "default", settings: Settings = None):
    settings = settings or Settings.from_env()
    session_id = str(uuid.uuid4())
    print(f"Starting SupportWise CLI. Business: {business_id}, Session ID: {session_id}")
    logger.info(f"Starting SupportWise CLI. Business: {business_id}, Session ID: {session_id}")

    orchestrator = ResponseOrchestrationAgent.from_settings(settings)

    greeting = await orchestrator.initial_message(business_id)
    if "business_name" not in greeting:
        print(f"Business '{business_id}' not found. Check BUSINESS_DATA_PATH.")
        return
    print(f"\n{greeting['business_name']}: {greeting['message']}")

    try:
        while True:
            user_input_text = input(PROMPT).strip()
            if user_input_text.lower() == 'exit':
                break
            if user_input_text.lower() == 'reset':
                session_id = str(uuid.uuid4())
                print(f"Conversation reset. New session: {session_id}")
                continue
            if not user_input_text:
                print("Please enter a message.")
                continue

            result = await orchestrator.process({
                "message": user_input_text,
                "business_id": business_id,
                "session_id": session_id,
            })
            if result.get("status") == "failure":
                print(f"Error: {result.get('error')}")
                continue
            print_result(result)

    except (KeyboardInterrupt, EOFError):
        logger.info("Exiting CLI...")
    finally:
        print("SupportWise CLI terminated.")
        logger.info("SupportWise CLI terminated.")


def run_cli(argv=None):
    parser = argparse.ArgumentParser(description="Chat with a SupportWise business assistant from the terminal.")
    parser.add_argument("--business", default="default", help="Business id from the business data file.")
    args = parser.parse_args(argv)

    try:
        asyncio.run(main_workflow(business_id=args.business))
    except Exception as e:
        logger.error(f"CLI execution failed: {e}", exc_info=True)


if __name__ == "__main__":
    run_cli()
