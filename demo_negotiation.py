"""
Demo script to run a live negotiation from the terminal.

WHAT: Interactive negotiation against a running marketplace API
WHY: Visual verification of the orchestrator, initiator and channel together
HOW: Open a negotiation, read offers from stdin, print every state change
"""

import argparse
import asyncio

from negotiation_client.api.initiator import NegotiationInitiator
from negotiation_client.core.orchestrator import NegotiationOrchestrator
from negotiation_client.models.negotiation import NegotiationSession
from negotiation_client.utils.exceptions import (
    AuthenticationError,
    ChannelConnectionError,
    InvalidOfferError,
    NegotiationNotActiveError,
    OrchestratorError,
)
from negotiation_client.utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def print_banner(text: str, char: str = "="):
    """Print a formatted banner."""
    width = 80
    print(f"\n{char * width}\n{text.center(width)}\n{char * width}\n")


def print_state(session: NegotiationSession | None):
    """Pretty print the latest offer and status."""
    if session is None:
        print_banner("NEGOTIATION CLOSED", "-")
        return

    offer = session.last_offer
    if offer is not None:
        who = "BUYER" if offer.origin == "buyer" else "SELLER"
        price = f"{offer.amount:,.0f}" if offer.amount is not None else "-"
        print(f"[{who}] {price} :: {offer.message}")
    print(f"    status: {session.status} ({len(session.history)} offers)")

    if session.status == "accepted":
        print_banner(f"ACCEPTED AT {session.final_price:,.0f}")
        print(f"Savings: {session.savings:,.0f} ({session.savings_percentage}%)")
    elif session.status == "rejected":
        print_banner("REJECTED")


async def read_price(prompt: str) -> str:
    """Read a line without blocking inbound channel events."""
    return (await asyncio.to_thread(input, prompt)).strip()


async def run(args: argparse.Namespace):
    initiator = NegotiationInitiator(args.api_url)
    orchestrator = NegotiationOrchestrator(initiator, args.token)
    orchestrator.on_state_change(print_state)

    try:
        async with orchestrator:
            await orchestrator.open_for(args.product_id, args.original_price)
            print_banner(f"NEGOTIATING PRODUCT {args.product_id}")

            next_price = args.price
            while True:
                session = orchestrator.current_state
                if session is None or session.is_terminal:
                    break
                if session.status == "awaiting_response":
                    if not orchestrator.is_listening:
                        try:
                            await orchestrator.reconnect()
                        except ChannelConnectionError as e:
                            logger.warning(f"Still offline: {e.message}")
                            await asyncio.sleep(2)
                    await asyncio.sleep(0.5)
                    continue

                if next_price is None:
                    raw = await read_price("Your offer (empty to quit): ")
                    if not raw:
                        break
                    try:
                        next_price = float(raw)
                    except ValueError:
                        print("Please enter a number")
                        continue

                try:
                    await orchestrator.propose_price(next_price)
                except InvalidOfferError as e:
                    print(e.message)
                except (NegotiationNotActiveError, ChannelConnectionError) as e:
                    print(e.message)
                except OrchestratorError as e:
                    print(f"Could not start negotiation: {e.message}")
                next_price = None

            if orchestrator.current_state and orchestrator.current_state.status == "accepted" and args.add_to_cart:
                result = await orchestrator.add_to_cart()
                print(f"Added to cart: {result}")
    except AuthenticationError as e:
        logger.error(f"Login required: {e.message}")
    finally:
        await initiator.close()


def main():
    parser = argparse.ArgumentParser(description="Negotiate a product price from the terminal")
    parser.add_argument("--product-id", required=True, help="Product to negotiate")
    parser.add_argument("--original-price", type=float, required=True, help="Product list price")
    parser.add_argument("--price", type=float, default=None, help="Opening offer (prompted if omitted)")
    parser.add_argument("--token", required=True, help="Bearer token of a logged-in buyer")
    parser.add_argument("--api-url", default=None, help="API root (defaults to API_BASE_URL)")
    parser.add_argument("--add-to-cart", action="store_true", help="Add the product to the cart once accepted")
    asyncio.run(run(parser.parse_args()))


if __name__ == "__main__":
    main()
