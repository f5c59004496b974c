"""Вспомогательные данные для тестов службы доставки."""

IMAGE = "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"


def make_item(code: str = "A1", weight: int = 10, name: str = "aspirin", image: str = IMAGE) -> dict:
    """Позиция партии медикаментов в формате запроса."""
    return {"code": code, "name": name, "weight": weight, "image_base64": image}
