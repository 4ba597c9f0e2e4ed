from smartcampus.services.requirements import expand_requirements, split_hours


def test_split_hours_emits_trailing_remainder_block():
    assert split_hours(4, 2) == [2, 2]
    assert split_hours(5, 2) == [2, 2, 1]
    assert split_hours(3, 1) == [1, 1, 1]


def test_theory_subject_expands_to_single_periods(catalog_builder):
    catalog = catalog_builder(
        subjects=[("CS101", 3)],
        rooms=[("R1", 60)],
        groups=[("G1", 40)],
        eligibility=[("T1", "CS101")],
        requirements=[("G1", "CS101")],
    )
    requirements = expand_requirements(catalog, block_size=2)
    assert [item.block_size for item in requirements] == [1, 1, 1]
    assert [item.sequence_index for item in requirements] == [0, 1, 2]


def test_consecutive_subject_expands_to_blocks(catalog_builder):
    catalog = catalog_builder(
        subjects=[("CS191", 5, "lab", True)],
        rooms=[("LAB1", 60, "lab")],
        groups=[("G1", 40)],
        eligibility=[("T1", "CS191")],
        requirements=[("G1", "CS191")],
    )
    requirements = expand_requirements(catalog, block_size=2)
    assert [item.block_size for item in requirements] == [2, 2, 1]
    assert sum(item.block_size for item in requirements) == 5


def test_lab_without_consecutive_flag_stays_single_period(catalog_builder):
    catalog = catalog_builder(
        subjects=[("CS192", 2, "practical", False)],
        rooms=[("LAB1", 60, "lab")],
        groups=[("G1", 40)],
        eligibility=[("T1", "CS192")],
        requirements=[("G1", "CS192")],
    )
    assert [item.block_size for item in expand_requirements(catalog, 2)] == [1, 1]


def test_most_constrained_requirements_come_first(catalog_builder):
    catalog = catalog_builder(
        teachers=["T1", "T2"],
        subjects=[("EASY", 1), ("LAB", 2, "lab", True), ("ONE", 1)],
        rooms=[("R1", 60), ("R2", 60), ("LAB1", 60, "lab")],
        groups=[("G1", 40)],
        eligibility=[("T1", "EASY"), ("T2", "EASY"), ("T1", "LAB"), ("T2", "ONE")],
        requirements=[("G1", "EASY"), ("G1", "ONE"), ("G1", "LAB")],
    )
    order = [item.subject_id for item in expand_requirements(catalog, 2)]
    # LAB: one teacher, one room. ONE: one teacher, three rooms. EASY: two teachers.
    assert order == ["LAB", "ONE", "EASY"]


def test_larger_blocks_come_first_within_same_subject(catalog_builder):
    catalog = catalog_builder(
        subjects=[("LAB", 3, "lab", True)],
        rooms=[("LAB1", 60, "lab")],
        groups=[("G1", 40)],
        eligibility=[("T1", "LAB")],
        requirements=[("G1", "LAB")],
    )
    assert [item.block_size for item in expand_requirements(catalog, 2)] == [2, 1]


def test_ties_keep_declaration_order(catalog_builder):
    catalog = catalog_builder(
        subjects=[("B", 1), ("A", 1)],
        rooms=[("R1", 60)],
        groups=[("G2", 40), ("G1", 40)],
        eligibility=[("T1", "A"), ("T1", "B")],
        requirements=[("G2", "B"), ("G1", "A"), ("G1", "B")],
    )
    pairs = [(item.group_id, item.subject_id) for item in expand_requirements(catalog, 2)]
    assert pairs == [("G2", "B"), ("G1", "A"), ("G1", "B")]
    assert [item.declaration_index for item in expand_requirements(catalog, 2)] == [0, 1, 2]
