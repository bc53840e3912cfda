import unittest

from garden.rich_text import reading_time, render_block, render_blocks, render_rich_text


def _text(value, href=None, **annotations):
    return {"plain_text": value, "href": href, "annotations": annotations}


class ReadingTimeTests(unittest.TestCase):
    def test_cjk_characters_at_four_hundred_per_minute(self):
        self.assertEqual(reading_time("字" * 800), 2)

    def test_short_english_rounds_up_to_one(self):
        self.assertEqual(reading_time("word " * 50), 1)

    def test_markup_is_ignored(self):
        self.assertEqual(reading_time("<p>" + "字" * 401 + "</p>"), 2)
        self.assertEqual(reading_time(""), 1)


class RichTextTests(unittest.TestCase):
    def test_annotations_wrap_in_fixed_order_then_link(self):
        html = render_rich_text([_text("hi", href="https://example.com", bold=True, italic=True, underline=True)])
        self.assertEqual(html, '<a href="https://example.com"><u><em><strong>hi</strong></em></u></a>')

    def test_text_is_escaped(self):
        self.assertEqual(render_rich_text([_text("<b>&")]), "&lt;b&gt;&amp;")


class BlockRenderingTests(unittest.TestCase):
    def test_known_blocks(self):
        blocks = [
            {"type": "heading_2", "heading_2": {"rich_text": [_text("Title")]}},
            {"type": "paragraph", "paragraph": {"rich_text": [_text("Body", code=True)]}},
            {"type": "code", "code": {"language": "python", "rich_text": [_text("print(1)")]}},
            {"type": "divider", "divider": {}},
            {"type": "callout", "callout": {"rich_text": [_text("Note")]}},
        ]
        self.assertEqual(
            render_blocks(blocks),
            "\n".join(
                [
                    "<h2>Title</h2>",
                    "<p><code>Body</code></p>",
                    '<pre><code class="language-python">print(1)</code></pre>',
                    "<hr />",
                    '<aside class="callout">Note</aside>',
                ]
            ),
        )

    def test_image_with_caption(self):
        block = {
            "type": "image",
            "image": {
                "type": "external",
                "external": {"url": "https://example.com/a.jpg"},
                "caption": [_text("Sunset")],
            },
        }
        self.assertEqual(
            render_block(block),
            '<figure><img src="https://example.com/a.jpg" alt="Sunset" loading="lazy" />'
            "<figcaption>Sunset</figcaption></figure>",
        )

    def test_toggle_renders_summary_only(self):
        block = {"type": "toggle", "has_children": True, "toggle": {"rich_text": [_text("More")]}}
        self.assertEqual(render_block(block), "<details><summary>More</summary></details>")

    def test_unknown_blocks(self):
        with_text = {"type": "to_do", "to_do": {"rich_text": [_text("Buy milk")], "checked": False}}
        without_text = {"type": "table_of_contents", "table_of_contents": {}}

        self.assertEqual(render_block(with_text), "<p>Buy milk</p>")
        self.assertEqual(render_block(without_text), "")
        self.assertEqual(render_blocks([without_text, with_text]), "<p>Buy milk</p>")


if __name__ == "__main__":
    unittest.main()
