from fastapi import HTTPException
from typing import Optional, Union


def check_not_found(item, resource_name: str = "Resource", resource_id: Optional[Union[int, str]] = None) -> None:

    if not item:
        if resource_id:
            raise HTTPException(
                status_code=404,
                detail=f"{resource_name} {resource_id} not found"
            )
        raise HTTPException(status_code=404, detail=f"{resource_name} not found")
