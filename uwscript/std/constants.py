from typing import Dict

from uwscript.objects import BuiltinConstant, ConstantTag, String


def populate_constants() -> Dict[str, BuiltinConstant]:
    return {tag.name: BuiltinConstant(tag, String(tag.value)) for tag in ConstantTag}
