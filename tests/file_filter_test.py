"""
Include/exclude glob filtering
"""

import unittest

from webharvest.file_filter import FileFilter


def matches(pattern, path):
    return FileFilter(include=[pattern]).should_include(path)


class TestGlobMatching(unittest.TestCase):
    def test_double_star_matches_any_depth(self):
        self.assertTrue(matches("docs/**", "docs/api.md"))
        self.assertTrue(matches("docs/**", "docs/a/b/c.md"))
        self.assertFalse(matches("docs/**", "src/x.js"))

    def test_double_star_in_middle(self):
        self.assertTrue(matches("docs/**/*.md", "docs/api.md"))
        self.assertTrue(matches("docs/**/*.md", "docs/a/b/api.md"))
        self.assertFalse(matches("docs/**/*.md", "docs/a/api.txt"))

    def test_pattern_without_slash_matches_basename(self):
        self.assertTrue(matches("*.md", "README.md"))
        self.assertTrue(matches("*.md", "docs/deep/guide.md"))
        self.assertFalse(matches("*.md", "docs/guide.txt"))

    def test_single_star_stays_in_segment(self):
        self.assertTrue(matches("docs/*.md", "docs/a.md"))
        self.assertFalse(matches("docs/*.md", "docs/sub/a.md"))

    def test_character_class_and_question_mark(self):
        self.assertTrue(matches("v[0-9]/?.md", "v2/a.md"))
        self.assertFalse(matches("v[!0-9]/a.md", "v2/a.md"))

    def test_brace_expansion(self):
        self.assertTrue(matches("*.{md,txt}", "notes.txt"))
        self.assertTrue(matches("*.{md,txt}", "docs/notes.md"))
        self.assertFalse(matches("*.{md,txt}", "notes.rst"))

    def test_leading_slash_is_ignored(self):
        self.assertTrue(matches("/docs/**", "docs/x"))
        self.assertEqual(FileFilter(include="/docs/**").include_patterns, ["docs/**"])


class TestFileFilter(unittest.TestCase):
    def test_include_only(self):
        f = FileFilter(include=["docs/**"])
        self.assertTrue(f.should_include("docs/api.md"))
        self.assertFalse(f.should_include("src/x.js"))

    def test_exclude_wins_over_include(self):
        f = FileFilter(include=["docs/**"], exclude=["docs/internal/**"])
        self.assertTrue(f.should_include("docs/public/a.md"))
        self.assertFalse(f.should_include("docs/internal/a.md"))

    def test_no_patterns_admits_everything(self):
        f = FileFilter()
        self.assertTrue(f.should_include("anything/at/all"))
        self.assertFalse(f.get_summary()["has_filters"])

    def test_backslashes_are_normalized(self):
        f = FileFilter(include=["docs/**"])
        self.assertTrue(f.should_include("docs\\api.md"))

    def test_single_string_patterns(self):
        f = FileFilter(include="docs/**", exclude="*.txt")
        self.assertEqual(f.include_patterns, ["docs/**"])
        self.assertFalse(f.should_include("docs/a.txt"))

    def test_filter_paths(self):
        f = FileFilter(exclude=["*.js"])
        self.assertEqual(f.filter_paths(["a.md", "b.js", "c/d.md"]), ["a.md", "c/d.md"])

    def test_should_crawl_url_uses_path_without_leading_slash(self):
        f = FileFilter(include=["docs/**"])
        self.assertTrue(f.should_crawl_url("https://h/docs/api"))
        self.assertFalse(f.should_crawl_url("https://h/blog/post"))

    def test_root_url_maps_to_index_html(self):
        self.assertTrue(FileFilter(include=["*.html"]).should_crawl_url("https://h/"))
        self.assertFalse(FileFilter(exclude=["index.html"]).should_crawl_url("https://h/"))

    def test_unparseable_url_defaults_to_include(self):
        f = FileFilter(include=["docs/**"])
        self.assertTrue(f.should_crawl_url("not a url"))

    def test_summary(self):
        f = FileFilter(include=["a/**"], exclude=["b"])
        self.assertEqual(f.get_summary(), {
            "include_patterns": ["a/**"],
            "exclude_patterns": ["b"],
            "has_filters": True,
        })


class TestShouldExploreDirectory(unittest.TestCase):
    def test_no_includes_explores_everything(self):
        self.assertTrue(FileFilter(exclude=["x"]).should_explore_directory("any/dir"))

    def test_basename_pattern_explores_everything(self):
        self.assertTrue(FileFilter(include=["*.md"]).should_explore_directory("src/deep"))

    def test_literal_prefix_must_agree(self):
        f = FileFilter(include=["docs/api/*.md"])
        self.assertTrue(f.should_explore_directory("docs"))
        self.assertTrue(f.should_explore_directory("docs/api"))
        self.assertFalse(f.should_explore_directory("src"))
        self.assertFalse(f.should_explore_directory("docs/guide"))

    def test_double_star_explores_below(self):
        f = FileFilter(include=["docs/**"])
        self.assertTrue(f.should_explore_directory("docs/a/b/c"))
        self.assertFalse(f.should_explore_directory("src"))

    def test_wildcard_segment(self):
        f = FileFilter(include=["packages/*/README.md"])
        self.assertTrue(f.should_explore_directory("packages/core"))
        self.assertFalse(f.should_explore_directory("packages/core/src"))

    def test_brace_alternatives(self):
        f = FileFilter(include=["{docs,guides}/**"])
        self.assertTrue(f.should_explore_directory("guides/intro"))
        self.assertFalse(f.should_explore_directory("blog"))


if __name__ == "__main__":
    unittest.main()
