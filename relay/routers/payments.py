from datetime import datetime, timezone

from fastapi import APIRouter, Request

from relay.models.payment import PaymentRequest
from relay.models.response import PaymentInsights, PaymentResponse

router = APIRouter(prefix="/api/v1/payments")


@router.post("/process", response_model=PaymentResponse)
async def process_payment(body: PaymentRequest, request: Request) -> PaymentResponse:
    """
    Score, route and settle a payment.

    - High-risk payments are forced onto the secure vault.
    - London visa traffic at night goes to the UK local acquirer.
    - European users go to Adyen; everything else to Stripe.
    - An unhealthy or failing primary is failed over exactly once.
    """
    engine = request.app.state.engine
    outcome = await engine.orchestrate(body)
    return PaymentResponse(
        data=outcome,
        insights=PaymentInsights(
            optimization_reason=outcome.route.reason,
            processed_at=datetime.now(timezone.utc),
        ),
    )
