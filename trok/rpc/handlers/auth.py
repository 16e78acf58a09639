"""
trok/rpc/handlers/auth.py

Bank-linking procedures used by the dashboard.
"""

from trok.rpc.dispatcher import RpcContext, procedure
from trok.schemas.auth import EmailRequest
from trok.services import signup_service, user_service
from trok.utils.validation_utils import normalize_email


@procedure("mutation", "auth.linkBusinessBankAccount", input_type=EmailRequest)
async def link_business_bank_account(ctx: RpcContext, data: EmailRequest):
    return await ctx.plaid.create_link_token(data.email)


@procedure("query", "auth.checkAccountLinked", input_type=str)
async def check_account_linked(ctx: RpcContext, email: str) -> bool:
    """True once a Plaid item is stored for this email."""
    email = normalize_email(email)

    user = await user_service.get_user_by_email(email)
    if user and user.get("plaid_access_token"):
        return True

    signup = await signup_service.get_signup(email)
    return bool(signup and signup.get("plaid_access_token"))
