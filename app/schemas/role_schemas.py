from pydantic import BaseModel


class RoleAssignment(BaseModel):
    user_id: int
    role_name: str
