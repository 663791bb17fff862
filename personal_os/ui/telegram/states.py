from aiogram.fsm.state import State, StatesGroup


class TaskFlow(StatesGroup):
    add_title = State()
    edit_value = State()
    search = State()


class ClientFlow(StatesGroup):
    new_name = State()
    choose_template = State()
