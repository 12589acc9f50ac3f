from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel

from bgremoval.deps import get_clerk_id, get_razorpay_gateway, get_stripe_gateway
from bgremoval.gateways.razorpay_orders import RazorpayGateway
from bgremoval.gateways.stripe_checkout import StripeGateway
from bgremoval.services import credits as credits_service
from bgremoval.services import payments as payments_service
from bgremoval.services import users as users_service

router = APIRouter()


class PurchaseRequest(BaseModel):
    planId: str | None = None


class VerifyRazorpayRequest(BaseModel):
    razorpay_order_id: str


class VerifyStripeRequest(BaseModel):
    transactionId: str | None = None
    success: str | bool | None = None


@router.post("/webhooks")
async def clerk_webhooks(request: Request):
    """Clerk user.created / user.updated / user.deleted, Svix-signed."""
    body = await request.body()
    await users_service.handle_clerk_webhook(body, request.headers)
    return {}


@router.get("/credits")
async def user_credits(clerk_id: str = Depends(get_clerk_id)):
    """Return the caller's credit balance."""
    credits = await credits_service.get_balance(clerk_id)
    return {"success": True, "credits": credits}


@router.post("/pay-razor")
async def pay_razorpay(
    body: PurchaseRequest,
    clerk_id: str = Depends(get_clerk_id),
    gateway: RazorpayGateway = Depends(get_razorpay_gateway),
):
    """Create a transaction and a Razorpay order for the plan."""
    handle = await payments_service.initiate_purchase(clerk_id, body.planId, gateway)
    return {"success": True, **handle}


@router.post("/verify-razor")
async def verify_razorpay(
    body: VerifyRazorpayRequest,
    clerk_id: str = Depends(get_clerk_id),
    gateway: RazorpayGateway = Depends(get_razorpay_gateway),
):
    """Re-read the order from Razorpay and settle its transaction."""
    await payments_service.verify_payment(gateway, body.model_dump())
    return {"success": True, "message": "Credits Added"}


@router.post("/pay-stripe")
async def pay_stripe(
    body: PurchaseRequest,
    clerk_id: str = Depends(get_clerk_id),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    origin: str | None = Header(default=None),
):
    """Create a transaction and a Stripe Checkout session; redirects back to /verify."""
    handle = await payments_service.initiate_purchase(clerk_id, body.planId, gateway, origin=origin)
    return {"success": True, **handle}


@router.post("/verify-stripe")
async def verify_stripe(
    body: VerifyStripeRequest,
    clerk_id: str = Depends(get_clerk_id),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """Settle a Stripe transaction from the redirect's success flag (client-reported)."""
    await payments_service.verify_payment(gateway, body.model_dump())
    return {"success": True, "message": "Credits Added"}
