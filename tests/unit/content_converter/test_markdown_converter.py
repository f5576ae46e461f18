"""Unit tests for content_converter.markdown_converter module."""

import pytest

from src.content_converter.markdown_converter import MarkdownConverter
from src.wiki_client.models import DocumentContent


def run(content, **style):
    element = {'text_run': {'content': content}}
    if style:
        element['text_run']['text_element_style'] = style
    return element


def block(block_id, block_type, key=None, elements=None, children=None, **payload):
    data = {'block_id': block_id, 'block_type': block_type}
    if key is not None:
        data[key] = {'elements': elements or [], **payload}
    else:
        data.update(payload)
    if children:
        data['children'] = children
    return data


def document(*blocks):
    page = block('page', 1, 'page', [run('Title')], children=[b['block_id'] for b in blocks if b.pop('_top', True)])
    return DocumentContent(document={'document_id': 'page'}, blocks=[page, *blocks])


def nested(b):
    b['_top'] = False
    return b


@pytest.fixture
def converter():
    return MarkdownConverter()


class TestTextBlocks:
    """Test cases for paragraphs, headings and inline styles."""

    def test_paragraphs_are_separated_by_blank_lines(self, converter):
        """Each text block becomes one paragraph."""
        result = converter.convert(document(
            block('t1', 2, 'text', [run('First')]),
            block('t2', 2, 'text', [run('Second')]),
        ))
        assert result.markdown == "First\n\nSecond\n"
        assert result.warnings == []

    def test_heading_levels(self, converter):
        """heading1..heading9 map to # levels capped at six."""
        result = converter.convert(document(
            block('h1', 3, 'heading1', [run('One')]),
            block('h3', 5, 'heading3', [run('Three')]),
            block('h9', 11, 'heading9', [run('Nine')]),
        ))
        assert result.markdown == "# One\n\n### Three\n\n###### Nine\n"

    def test_inline_styles(self, converter):
        """Bold, italic, strikethrough, inline code and links are rendered."""
        result = converter.convert(document(
            block('t1', 2, 'text', [
                run('bold', bold=True),
                run(' and '),
                run('code', inline_code=True),
                run(' '),
                run('gone', strikethrough=True),
                run(' '),
                run('docs', link={'url': 'https%3A%2F%2Fexample.com%2Fa'}),
            ]),
        ))
        assert result.markdown == "**bold** and `code` ~~gone~~ [docs](https://example.com/a)\n"

    def test_mention_and_equation(self, converter):
        """Document mentions become links and equations are wrapped in $."""
        result = converter.convert(document(
            block('t1', 2, 'text', [
                {'mention_doc': {'title': 'Setup', 'url': 'https://example.feishu.cn/wiki/wikcnS'}},
                run(' '),
                {'equation': {'content': 'E=mc^2\n'}},
            ]),
        ))
        assert result.markdown == "[Setup](https://example.feishu.cn/wiki/wikcnS) $E=mc^2$\n"


class TestStructuredBlocks:
    """Test cases for lists, code, quotes and tables."""

    def test_ordered_numbering_restarts_after_other_blocks(self, converter):
        """Consecutive ordered items are numbered; a paragraph restarts the run."""
        result = converter.convert(document(
            block('o1', 13, 'ordered', [run('a')]),
            block('o2', 13, 'ordered', [run('b')]),
            block('t1', 2, 'text', [run('break')]),
            block('o3', 13, 'ordered', [run('c')]),
        ))
        assert result.markdown == "1. a\n\n2. b\n\nbreak\n\n1. c\n"

    def test_nested_bullets_are_indented(self, converter):
        """Children of a list item are indented below it."""
        result = converter.convert(document(
            block('b1', 12, 'bullet', [run('parent')], children=['b2']),
            nested(block('b2', 12, 'bullet', [run('child')])),
        ))
        assert result.markdown == "- parent\n    - child\n"

    def test_todo_items(self, converter):
        """Todo blocks render as task list items."""
        result = converter.convert(document(
            block('d1', 17, 'todo', [run('done')], style={'done': True}),
            block('d2', 17, 'todo', [run('open')]),
        ))
        assert result.markdown == "- [x] done\n\n- [ ] open\n"

    def test_code_block_language_and_plain_text(self, converter):
        """Code blocks keep raw text and map the language enum."""
        result = converter.convert(document(
            block('c1', 14, 'code', [run('print(1)', bold=True)], style={'language': 49}),
        ))
        assert result.markdown == "```python\nprint(1)\n```\n"

    def test_quote_container_and_divider(self, converter):
        """Quote containers prefix every child line; dividers become ---."""
        result = converter.convert(document(
            block('q1', 34, children=['q2']),
            nested(block('q2', 2, 'text', [run('quoted')])),
            block('dv', 22),
        ))
        assert result.markdown == "> quoted\n\n---\n"

    def test_table(self, converter):
        """Tables render with the first row as header."""
        cells = ['c1', 'c2', 'c3', 'c4']
        blocks = [{
            'block_id': 'tb', 'block_type': 31,
            'table': {'cells': cells, 'property': {'column_size': 2}},
        }]
        for i, cell_id in enumerate(cells):
            blocks.append(nested({'block_id': cell_id, 'block_type': 32, 'children': [f"{cell_id}t"]}))
            blocks.append(nested(block(f"{cell_id}t", 2, 'text', [run(f"v{i}|x")])))

        result = converter.convert(document(*blocks))

        assert result.markdown == (
            "| v0\\|x | v1\\|x |\n"
            "| --- | --- |\n"
            "| v2\\|x | v3\\|x |\n"
        )


class TestImagesAndWarnings:
    """Test cases for image token collection and unsupported blocks."""

    def test_image_tokens_collected_in_order_with_repeats(self, converter):
        """Every image reference is kept, in order, including repeats."""
        result = converter.convert(document(
            block('i1', 27, image={'token': 'boxcnB'}),
            block('i2', 27, image={'token': 'boxcnA'}),
            block('i3', 27, image={'token': 'boxcnB'}),
        ))
        assert result.image_tokens == ['boxcnB', 'boxcnA', 'boxcnB']
        assert result.markdown == "![](boxcnB)\n\n![](boxcnA)\n\n![](boxcnB)\n"

    def test_unsupported_block_warns_and_renders_children(self, converter):
        """Unknown block types add a warning but keep their content."""
        result = converter.convert(document(
            block('g1', 24, children=['g2']),
            nested(block('g2', 2, 'text', [run('inside grid')])),
        ))
        assert result.markdown == "inside grid\n"
        assert len(result.warnings) == 1
        assert "24" in result.warnings[0]

    def test_missing_child_block_warns(self, converter):
        """A child id without a block is reported and skipped."""
        page = block('page', 1, 'page', [run('Title')], children=['ghost'])
        result = converter.convert(DocumentContent(document={}, blocks=[page]))
        assert result.markdown == "\n"
        assert result.warnings == ["Missing block ghost"]

    def test_empty_document(self, converter):
        """A document without blocks converts to an empty body."""
        result = converter.convert(DocumentContent(document={}, blocks=[]))
        assert result.markdown == ""
        assert result.image_tokens == []
