def add_roster(data_manager, count, category='OC'):
    """Upload `count` students named Student 1..N and return their ids."""
    start = len(data_manager.students)
    data_manager.add_students([
        {'name': f'Student {i}', 'phone': f'98765{i:05d}', 'rank': 1000 + i, 'category': category}
        for i in range(1, count + 1)
    ])
    return [s.id for s in data_manager.students[start:]]
