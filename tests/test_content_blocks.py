from uuid import UUID

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.models.content_block import BlockType
from app.schemas.content_block import ContentBlock, ContentBlockInput


def test_list_block_accepts_list_content():
    block = ContentBlock(type="list", content=["a", "b"])
    assert block.type == BlockType.LIST
    assert block.content == ["a", "b"]
    assert isinstance(block.id, UUID)


def test_list_block_rejects_string_content():
    with pytest.raises(PydanticValidationError):
        ContentBlock(type="list", content="a, b")


@pytest.mark.parametrize("block_type", ["paragraph", "heading", "quote", "image"])
def test_scalar_blocks_reject_list_content(block_type):
    with pytest.raises(PydanticValidationError):
        ContentBlock(type=block_type, content=["a"])


def test_unknown_block_type_rejected():
    with pytest.raises(PydanticValidationError):
        ContentBlock(type="video", content="x")


def test_block_is_immutable():
    block = ContentBlock(type="paragraph", content="text")
    with pytest.raises(PydanticValidationError):
        block.content = "changed"


def test_input_list_items_are_trimmed_and_blanks_dropped():
    block = ContentBlockInput(type="list", content=["  a ", "", "   ", "b"])
    assert block.content == ["a", "b"]


def test_input_list_of_only_blanks_rejected():
    with pytest.raises(PydanticValidationError):
        ContentBlockInput(type="list", content=["", "  "])


def test_input_blank_paragraph_rejected():
    with pytest.raises(PydanticValidationError):
        ContentBlockInput(type="paragraph", content="   ")


def test_input_image_block_requires_url():
    with pytest.raises(PydanticValidationError):
        ContentBlockInput(type="image", content="not a url")

    block = ContentBlockInput(type="image", content="https://cdn.example.com/a.png")
    assert block.to_block().content == "https://cdn.example.com/a.png"


def test_to_block_keeps_supplied_id():
    block_id = UUID("123e4567-e89b-12d3-a456-426614174000")
    block = ContentBlockInput(id=block_id, type="quote", content="Ship it").to_block()
    assert block.id == block_id


def test_to_block_assigns_fresh_ids():
    data = ContentBlockInput(type="paragraph", content="text")
    assert data.to_block().id != data.to_block().id


@pytest.mark.parametrize("block_type", ["paragraph", "heading", "quote"])
def test_input_scalar_content_is_trimmed(block_type):
    block = ContentBlockInput(type=block_type, content="  padded text \n")
    assert block.to_block().content == "padded text"


def test_input_image_url_is_stored_trimmed():
    block = ContentBlockInput(type="image", content="  https://cdn.example.com/a.png  ")
    assert block.content == "https://cdn.example.com/a.png"
