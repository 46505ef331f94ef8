from fastapi import APIRouter, Depends

from practicehub.common.deps import CurrentUser, get_current_user
from practicehub.common.errors import PracticeHubError, to_http
from .schemas import RunRequest, RunResponse, SupportedLanguagesResponse
from .service import ExecutionClient, get_execution_client, run_code

router = APIRouter(prefix="/run", tags=["execution"])


@router.post("", response_model=RunResponse)
async def run(
    req: RunRequest,
    current_user: CurrentUser = Depends(get_current_user),
    client: ExecutionClient = Depends(get_execution_client),
):
    try:
        return await run_code(client, req.code, req.language, req.stdin)
    except PracticeHubError as e:
        raise to_http(e)


@router.get("/languages", response_model=SupportedLanguagesResponse)
async def languages(client: ExecutionClient = Depends(get_execution_client)):
    langs = client.list_languages()
    return SupportedLanguagesResponse(backend=client.name, languages=langs, total_count=len(langs))
