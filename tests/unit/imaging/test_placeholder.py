from photo_pipeline.imaging.placeholder import compute_blur_hash
from tests.factories import make_image


def test_default_hash_shape():
    blur_hash = compute_blur_hash(make_image(640, 480))

    # 4x3 components: 1 size char + 1 max-AC + 4 DC + 2 * 11 AC
    assert len(blur_hash) == 28
    assert blur_hash[0] == "L"


def test_component_counts_change_hash_length():
    blur_hash = compute_blur_hash(make_image(640, 480), components_x=3, components_y=3)
    assert len(blur_hash) == 22


def test_is_deterministic():
    image = make_image(800, 600)
    assert compute_blur_hash(image) == compute_blur_hash(image)


def test_accepts_alpha_images():
    assert len(compute_blur_hash(make_image(120, 90, "RGBA"))) == 28
