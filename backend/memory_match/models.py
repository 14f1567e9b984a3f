from memory_match import db


class StoredValue(db.Model):
    """Backing table for the key-value store: one JSON string per key."""
    __tablename__ = 'stored_value'
    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.Float, nullable=True)

    def to_dict(self):
        return {
            'key': self.key,
            'value': self.value,
            'updated_at': self.updated_at,
        }
