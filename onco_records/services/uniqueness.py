# /onco_records/services/uniqueness.py


def national_id_taken(repository, national_id, exclude_id=None):
    """Whether another patient already holds ``national_id``.

    Archived patients count as holders. Pass ``exclude_id`` on update so a
    record matching its own national ID is not reported as a conflict.
    The unique index on ``patients.national_id`` remains the final
    authority when two writes race past this check.
    """
    if not national_id:
        return False

    holder = repository.find_by_national_id(national_id)
    if holder is None:
        return False
    return holder.id != exclude_id
