"""
Inbox notifications. Delivery is best-effort: callers get a boolean and the
primary operation never fails because a Message could not be written.
"""

from __future__ import annotations
import logging
from typing import Tuple

from pawfund.tasks import enqueue_message

logger = logging.getLogger(__name__)


def notify(
    *,
    from_id: str,
    to_id: str,
    title: str,
    content: str,
    related_case: str | None = None,
) -> bool:
    try:
        enqueue_message(
            from_id=from_id,
            to_id=to_id,
            title=title,
            content=content,
            related_case=related_case,
        )
        return True
    except Exception:
        logger.warning("notification %r to %s failed", title, to_id, exc_info=True)
        return False


def adoption_approved_message(
    animal: str, fee_usd: float, wallet: str | None
) -> Tuple[str, str]:
    title = f"Adoption Approved: {animal}"
    content = (
        f"Congratulations! Your adoption request for {animal} has been approved.\n\n"
        f"To complete the adoption, please pay the adoption fee of {fee_usd:g} USDT "
        f"worth of ETH to the following wallet address:\n{wallet or 'provided by the shelter'}\n\n"
        "Open \"My Requests\" in your dashboard and use the Pay button next to this "
        "request. Once the payment is verified we will finalize the adoption."
    )
    return title, content


def adoption_rejected_message(animal: str) -> Tuple[str, str]:
    return (
        f"Adoption Request Not Approved: {animal}",
        f"We regret to inform you that your adoption request for {animal} was not "
        "approved. Thank you for your interest and support.",
    )


def payment_received_message(animal: str, amount: float, from_address: str) -> Tuple[str, str]:
    return (
        "Payment Received",
        f"Payment of {amount:g} USDT has been received from address {from_address} "
        f"for the adoption of {animal}. The payment is being verified.",
    )


def payment_proof_received_message(animal: str) -> Tuple[str, str]:
    return (
        "Payment Proof Received",
        f"Your payment proof for adopting {animal} was received and is under review.",
    )


def payment_verified_message(animal: str) -> Tuple[str, str]:
    return (
        "Payment Verified",
        f"Your payment for adopting {animal} has been verified. The adoption process "
        "is now complete. Please contact the welfare organization to arrange the pickup.",
    )


def payment_rejected_message(animal: str) -> Tuple[str, str]:
    return (
        "Payment Rejected",
        f"Your payment for adopting {animal} was rejected. Please try making the "
        "payment again.",
    )


def thank_you_message(case_title: str, amount_eth: float) -> Tuple[str, str]:
    return (
        f"Thank you for your donation to {case_title}!",
        f"Thank you for your generous donation of {amount_eth:g} ETH to our case "
        f'"{case_title}". Your support means the world to us and the animals we care '
        "for. We'll keep you updated on how your donation is making a difference.",
    )


def donation_received_message(case_title: str, donor_name: str, amount_eth: float) -> Tuple[str, str]:
    return (
        f"New donation for {case_title}",
        f"{donor_name} donated {amount_eth:g} ETH to \"{case_title}\".",
    )
