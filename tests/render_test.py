"""
Markdown rendering and cleanup
"""

import unittest

from webharvest.render import MarkdownRenderer, cleanup_markdown


class TestMarkdownRenderer(unittest.TestCase):
    def setUp(self):
        self.renderer = MarkdownRenderer()

    def test_headings_and_paragraphs(self):
        md = self.renderer.render("<main><h1>Title</h1><p>Hello <strong>world</strong></p></main>")
        self.assertTrue(md.startswith("# Title"))
        self.assertIn("**world**", md)

    def test_pre_block_becomes_fence(self):
        html = '<main><p>Run:</p><pre><code class="language-python">def f():\n    return 1</code></pre></main>'
        md = self.renderer.render(html)
        self.assertIn("```python\ndef f():\n    return 1\n```", md)
        self.assertNotIn("WEBHARVESTFENCE", md)

    def test_long_inline_html_code_becomes_fence(self):
        snippet = '<div class="wrapper"><span class="inner">some text</span></div>'
        html = f'<main><p><code data-contains-html="true">{snippet.replace("<", "&lt;").replace(">", "&gt;")}</code></p></main>'
        md = self.renderer.render(html)
        self.assertIn("```html\n" + snippet + "\n```", md)

    def test_shell_comments_in_pre_stay_contiguous(self):
        html = '<main><pre><code class="language-bash"># install\npip install x\n# run\nx --help</code></pre></main>'
        md = self.renderer.render(html)
        self.assertIn("```bash\n# install\npip install x\n# run\nx --help\n```", md)

    def test_empty_links_and_scripts_dropped(self):
        html = '<main><p>Text<a href="#"></a><a href="/x"></a></p><script>evil()</script></main>'
        md = self.renderer.render(html)
        self.assertEqual(md, "Text")

    def test_regular_links_kept(self):
        md = self.renderer.render('<p>See <a href="/docs/api">the API</a></p>')
        self.assertIn("[the API](/docs/api)", md)


class TestCleanupMarkdown(unittest.TestCase):
    def test_collapses_blank_lines_and_trailing_whitespace(self):
        self.assertEqual(cleanup_markdown("a  \n\n\n\nb\t\n"), "a\n\nb")

    def test_removes_empty_link_artifacts(self):
        self.assertEqual(cleanup_markdown("x [](/y) z"), "x  z")

    def test_heading_gets_own_paragraph(self):
        self.assertEqual(cleanup_markdown("intro\n## Part\ntext"), "intro\n\n## Part\n\ntext")

    def test_heading_lines_inside_fences_untouched(self):
        md = "Run:\n```bash\n# install deps\npip install x\n```\n## Next"
        self.assertEqual(cleanup_markdown(md), "Run:\n```bash\n# install deps\npip install x\n```\n\n## Next")

    def test_tightens_fences(self):
        self.assertEqual(cleanup_markdown("text\n\n```\ncode\n```\n\nmore"), "text\n```\ncode\n```\nmore")


if __name__ == "__main__":
    unittest.main()
