"""Unit tests for image path resolution."""

from pathlib import Path

from notion_to_obsidian.converter import FileReference
from notion_to_obsidian.images import infer_extension, relative_image_path, resolve_images


class TestInferExtension:
    def test_case_insensitive_and_ignores_query(self):
        assert infer_extension("https://x.example/file.JPG?sig=abc") == ".jpg"

    def test_pdf(self):
        assert infer_extension("https://x.example/docs/manual.pdf") == ".pdf"

    def test_defaults_to_png(self):
        assert infer_extension("https://x.example/download?id=1") == ".png"

    def test_extension_only_in_query_defaults_to_png(self):
        assert infer_extension("https://x.example/blob?name=a.gif") == ".png"

    def test_unparsable_url_falls_back_to_substring(self):
        assert infer_extension("http://[::1/broken.webp") == ".webp"


class TestResolveImages:
    def test_indexes_follow_filtered_order(self, tmp_path):
        files = [
            FileReference(url="https://x.example/notes.txt", name="notes", output_name="Files"),
            FileReference(url="https://x.example/a.jpeg", name="a", output_name="Files"),
            FileReference(url="https://x.example/b.svg?v=2", name="b", output_name="Files"),
        ]
        images = resolve_images(files, "Trip: Day 1", tmp_path)
        assert [image.local_path.name for image in images] == ["Trip- Day 1_1.jpeg", "Trip- Day 1_2.svg"]
        assert [image.display_name for image in images] == ["a", "b"]
        assert all(image.property_name == "Files" for image in images)

    def test_no_files(self, tmp_path):
        assert resolve_images([], "Page", tmp_path) == []

    def test_local_path_inside_image_dir(self, tmp_path):
        images = resolve_images([FileReference(url="https://x.example/a.png", name="a")], "Page", tmp_path)
        assert images[0].local_path == tmp_path / "Page_1.png"


class TestRelativeImagePath:
    def test_nested_image_dir(self, tmp_path):
        output_dir = tmp_path / "notes"
        image_dir = output_dir / "images"
        assert relative_image_path(image_dir / "a_1.png", output_dir, image_dir) == "images/a_1.png"

    def test_sibling_image_dir(self, tmp_path):
        output_dir = tmp_path / "notes"
        image_dir = tmp_path / "assets" / "img"
        assert relative_image_path(image_dir / "a_1.png", output_dir, image_dir) == "../assets/img/a_1.png"

    def test_same_directory(self, tmp_path):
        assert relative_image_path(Path(tmp_path) / "a_1.png", tmp_path, tmp_path) == "a_1.png"
