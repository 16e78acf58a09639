from trok.rpc.dispatcher import RpcContext, procedure
from trok.schemas.invoice import UserScoped
from trok.services import payment_service, statement_service


@procedure("query", "getPayments", input_type=UserScoped)
async def get_payments(ctx: RpcContext, data: UserScoped):
    return await payment_service.get_payments(data.user_id)


@procedure("query", "getStatements", input_type=UserScoped)
async def get_statements(ctx: RpcContext, data: UserScoped):
    return await statement_service.get_statements(data.user_id)
