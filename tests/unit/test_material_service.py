"""Tests for material script generation."""

from tilemosaic.services.material_service import render_material, write_material


def test_render_material():
    text = render_material("abc123", "abc123.jpg")
    assert text.startswith("material abc123\n{")
    assert "texture abc123.jpg" in text
    assert "receive_shadows false" in text
    assert "lighting off" in text
    assert text.count("{") == text.count("}")


def test_write_material_named_after_image(tmp_path):
    image_path = tmp_path / "textures" / "deadbeef.jpg"
    path = write_material(tmp_path / "scripts" / "deadbeef.material", image_path)

    assert path.exists()
    text = path.read_text()
    assert text.splitlines()[0] == "material deadbeef"
    assert "texture deadbeef.jpg" in text


def test_write_material_overwrites(tmp_path):
    path = tmp_path / "m.material"
    path.write_text("stale")
    write_material(path, tmp_path / "fresh.jpg")
    assert "material fresh" in path.read_text()
