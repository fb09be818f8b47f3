from src.domain.services.prompt_history import MAX_PROMPTS, PromptHistory


def test_newest_first():
    history = PromptHistory()
    history.add("sepia")
    history.add("warmer lighting")
    assert history.items == ["warmer lighting", "sepia"]


def test_duplicates_move_to_front_ignoring_case():
    history = PromptHistory()
    history.add("Sepia")
    history.add("blur background")
    history.add("sepia ")
    assert history.items == ["sepia", "blur background"]


def test_blank_prompts_are_ignored():
    history = PromptHistory()
    assert history.add("   ") is False
    assert history.items == []


def test_capped_at_limit():
    history = PromptHistory()
    for i in range(MAX_PROMPTS + 5):
        history.add(f"prompt {i}")
    assert len(history.items) == MAX_PROMPTS
    assert history.items[0] == f"prompt {MAX_PROMPTS + 4}"
    assert "prompt 0" not in history.items


def test_initial_items_keep_order():
    history = PromptHistory(["c", "b", "a"])
    assert history.items == ["c", "b", "a"]
    history.clear()
    assert history.items == []
