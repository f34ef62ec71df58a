from fastapi import APIRouter, Depends

from salon.auth.dependencies import get_current_user
from salon.models.user import User

router = APIRouter(tags=['auth'])


@router.get('/me')
def me(current_user: User = Depends(get_current_user)):
    return {'email': current_user.email, 'role': current_user.role, 'business_name': current_user.business_name}
